"""
Main Application Module

Entry point for the Farm Passport console client.
A line-oriented shell driving the customer, restaurant and farmer surfaces.
"""

import argparse
import logging
import os
import shlex
import signal
import sys
from typing import Callable, Dict, List, Optional

from .api.client import APIClient
from .api.errors import Notice
from .config.config_manager import get_config, ConfigManager
from .config.logging_config import setup_logging
from .config.validator import validate_config
from .database.connection import close_database, get_database, DatabaseError
from .database.session_store import SQLiteSessionStore
from .portals.customer import CustomerPortal
from .portals.farmer import FarmerPortal
from .portals.restaurant import RestaurantPortal
from .qr.camera import CameraError, CameraScanner
from .router.customer import (
    AlreadyClaimed, BadgeCollection, ClaimAction, ClaimSuccess, FarmStory, ReceiptFlow,
    Scanning, Unauthenticated, claim_action,
)
from .router.farmer import Dashboard, FarmerLogin, FarmerRegister, RegistrationSuccess
from .router.restaurant import ReceiptCreated, ReceiptForm, RestaurantLogin, RestaurantRegister

ROLES = ("customer", "restaurant", "farmer")

HELP = {
    "customer": [
        "login <email> <password>",
        "register <email> <password> <confirm> <name>",
        "scan <code>          scan a batch id or receipt code",
        "camera               scan with the camera",
        "claim                claim the badge for the receipt on screen",
        "retry | another | badges | unlock | dismiss | logout",
    ],
    "restaurant": [
        "login <email> <password>",
        "register <email> <password> <confirm> <postcode> <restaurant name>",
        "batches              reload the batch list",
        "receipt <batch id> <amount>",
        "another | logout",
    ],
    "farmer": [
        "wallet               generate a new wallet and register it",
        "key <private key>    load an existing wallet",
        "register <farm name> <location> [description]",
        "continue | dashboard | logout",
        "batch <type> <product name> <quantity> <unit> [batch id]",
    ],
}


class FarmPassportApp:
    """Main application class for the Farm Passport console client"""

    def __init__(self) -> None:
        self.config: Optional[ConfigManager] = None
        self.logger: Optional[logging.Logger] = None
        self.client: Optional[APIClient] = None
        self.store: Optional[SQLiteSessionStore] = None
        self.customer: Optional[CustomerPortal] = None
        self.restaurant: Optional[RestaurantPortal] = None
        self.farmer: Optional[FarmerPortal] = None
        self.camera: Optional[CameraScanner] = None
        self.role: str = "customer"
        self.shutdown_requested: bool = False

    def setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown"""
        def signal_handler(signum, frame):
            _ = signum, frame
            print("Shutdown signal received...")
            self.shutdown_requested = True
            if self.camera:
                self.camera.stop_scanning()

        signal.signal(signal.SIGTERM, signal_handler)

    def load_configuration(self, debug: bool = False) -> None:
        """Load application configuration"""
        try:
            if debug:
                os.environ['DEBUG'] = 'true'
                os.environ['LOG_LEVEL'] = 'DEBUG'

            if not validate_config():
                raise RuntimeError("Configuration validation failed")

            self.config = get_config()
        except Exception as e:
            print(f"Configuration error: {e}")
            sys.exit(1)

    def setup_logging(self) -> None:
        """Setup logging system"""
        if not self.config:
            raise RuntimeError("Configuration not loaded")

        log_config = {
            "log_level": self.config.log_level,
            "log_file": self.config.log_file,
            "debug": self.config.debug
        }
        setup_logging(log_config)
        self.logger = logging.getLogger(__name__)
        self.logger.info("Logging system initialized")

    def initialize_database(self) -> None:
        """Open the session database"""
        if not self.config:
            raise RuntimeError("Configuration not loaded")

        try:
            db = get_database(self.config.database_url)
            self.store = SQLiteSessionStore(db)
            if self.logger:
                self.logger.info("Session store initialized")
        except DatabaseError as e:
            print(f"Database error: {e}")
            sys.exit(1)

    def initialize_components(self) -> None:
        """Create the API client, portals and camera scanner"""
        if not self.config or not self.store:
            raise RuntimeError("Configuration not loaded")

        self.client = APIClient(self.config)
        self.customer = CustomerPortal(
            self.client,
            self.store,
            allow_direct_unlock=self.config.allow_direct_unlock,
            explorer_tx_url=self.config.explorer_tx_url,
        )
        self.restaurant = RestaurantPortal(self.client, self.store)
        self.farmer = FarmerPortal(self.client, explorer_tx_url=self.config.explorer_tx_url)
        self.camera = CameraScanner(source=self.config.camera_source)

        if self.logger:
            self.logger.info("All components initialized")

    # Rendering

    def _show_notice(self, notice: Optional[Notice]) -> None:
        if notice is not None:
            print(f"! {notice.message} [{notice.action.value}]")

    def render(self) -> None:
        if self.role == "customer":
            self._render_customer()
        elif self.role == "restaurant":
            self._render_restaurant()
        else:
            self._render_farmer()

    def _render_customer(self) -> None:
        portal = self.customer
        state = portal.state
        if isinstance(state, Unauthenticated):
            print("[customer] Please login or register.")
        elif isinstance(state, Scanning):
            print("[customer] Ready to scan. Use 'scan <code>' or 'camera'.")
        elif isinstance(state, FarmStory):
            if state.batch is not None:
                batch = state.batch
                print(f"[farm story] {batch.product_name or batch.crop_type or 'Produce'} ({batch.batch_id})")
                print(f"  Grown by {batch.farmer.name}" + (f", {batch.farmer.location}" if batch.farmer.location else ""))
                if batch.farmer.description:
                    print(f"  {batch.farmer.description}")
                if batch.harvest_date:
                    print(f"  Harvested {batch.harvest_date:%d %b %Y}")
                if state.can_unlock:
                    print("  Use 'unlock' to collect a badge.")
                elif state.view_only:
                    print("  Earn this farm's badge by scanning your restaurant receipt.")
            self._show_notice(state.notice)
        elif isinstance(state, ReceiptFlow):
            receipt = state.receipt
            if receipt is not None:
                print(f"[receipt] {receipt.receipt_id} from {receipt.restaurant_name}")
                print(f"  {receipt.product_name or 'Dish'} sourced from {receipt.farm_name}")
                if receipt.amount_paid is not None:
                    print(f"  Paid {receipt.amount_paid:.2f}")
                action = claim_action(state, portal.session is not None)
                if action == ClaimAction.AVAILABLE:
                    print("  Use 'claim' to collect your badge.")
                elif action == ClaimAction.EXPIRED:
                    print("  This receipt has expired.")
                elif action == ClaimAction.LOGIN_REQUIRED:
                    print("  Login to claim this badge.")
                for listing in state.other_restaurants:
                    suffix = f" ({listing.postcode})" if listing.postcode else ""
                    print(f"  Also sourcing from this farm: {listing.name}{suffix}")
            self._show_notice(state.notice)
            self._show_notice(state.claim_notice)
        elif isinstance(state, ClaimSuccess):
            print(f"[claimed] Badge from {state.farm_name} added to your passport.")
        elif isinstance(state, AlreadyClaimed):
            print(f"[receipt] This receipt has already been claimed ({state.farm_name or 'farm'}).")
        elif isinstance(state, BadgeCollection):
            if state.summary is not None:
                summary = state.summary
                print(f"[badges] {summary.total} badges from {summary.farm_count} farms")
                for badge in summary.badges:
                    print(f"  - {badge.farm_name or 'Unknown farm'}: {badge.product_name or badge.batch_id or ''}")
            self._show_notice(state.notice)

        overlay = portal.overlay
        if overlay is not None:
            print(f"*** You supported {overlay.farm_name}! ***")
            if overlay.explorer_url:
                print(f"    View on chain: {overlay.explorer_url}")
            print("    'badges' to view your collection, 'dismiss' to close.")

    def _render_restaurant(self) -> None:
        state = self.restaurant.state
        if isinstance(state, RestaurantLogin):
            print("[restaurant] Please login or register.")
        elif isinstance(state, RestaurantRegister):
            print("[restaurant] Register a new restaurant.")
        elif isinstance(state, ReceiptForm):
            print(f"[restaurant] New receipt for {self.restaurant.restaurant_name}")
            for option in state.batches or ():
                print(f"  {option.label}")
        elif isinstance(state, ReceiptCreated):
            print(f"[receipt created] QR value: {state.qr_value}")
        self._show_notice(getattr(state, "notice", None))

    def _render_farmer(self) -> None:
        state = self.farmer.state
        if isinstance(state, FarmerLogin):
            print("[farmer] Load your wallet with 'key' or create one with 'wallet'.")
        elif isinstance(state, FarmerRegister):
            print(f"[farmer] Register farm for wallet {state.address}")
        elif isinstance(state, RegistrationSuccess):
            print(f"[farmer] Registered {state.address}")
            print(f"  Private key (save it now, it is not stored): {state.private_key}")
            if state.explorer_url:
                print(f"  Transaction: {state.explorer_url}")
        elif isinstance(state, Dashboard):
            if state.dashboard is not None:
                dashboard = state.dashboard
                print(f"[dashboard] {dashboard.farmer.farm_name} ({state.address})")
                print(f"  Unlocks: {dashboard.total_unlocks}  Scans: {dashboard.total_scans}")
                for batch in dashboard.batches:
                    print(f"  - {batch.batch_id}: {batch.product_name} {batch.quantity or ''}{batch.unit}")
            if state.last_batch is not None:
                print(f"  Created batch {state.last_batch.batch_id}")
        self._show_notice(getattr(state, "notice", None))

    # Commands

    def _customer_commands(self) -> Dict[str, Callable[[List[str]], Optional[Notice]]]:
        portal = self.customer
        return {
            "login": lambda a: portal.login(*a[:2]) if len(a) >= 2 else self._usage("login"),
            "register": lambda a: portal.register(a[0], a[1], a[2], " ".join(a[3:])) if len(a) >= 4 else self._usage("register"),
            "scan": lambda a: portal.submit_scan(" ".join(a)),
            "camera": lambda a: self.scan_with_camera(),
            "claim": lambda a: portal.claim() and None,
            "retry": lambda a: portal.retry(),
            "another": lambda a: portal.scan_another(),
            "badges": lambda a: portal.show_badges(),
            "unlock": lambda a: portal.unlock_badge(),
            "dismiss": lambda a: portal.dismiss_overlay(),
            "logout": lambda a: portal.logout(),
        }

    def _restaurant_commands(self) -> Dict[str, Callable[[List[str]], Optional[Notice]]]:
        portal = self.restaurant

        def register(a):
            if len(a) < 5:
                return self._usage("register")
            portal.show_register()
            return portal.register(a[0], a[1], a[2], " ".join(a[4:]), a[3])

        return {
            "login": lambda a: portal.login(*a[:2]) if len(a) >= 2 else self._usage("login"),
            "register": register,
            "batches": lambda a: portal.load_batches(),
            "receipt": lambda a: portal.create_receipt(a[0], a[1]) if len(a) >= 2 else self._usage("receipt"),
            "another": lambda a: portal.create_another(),
            "logout": lambda a: portal.logout(),
        }

    def _farmer_commands(self) -> Dict[str, Callable[[List[str]], Optional[Notice]]]:
        portal = self.farmer

        def create_batch(a):
            if len(a) < 4:
                return self._usage("batch")
            batch_id = a[4] if len(a) > 4 else portal.suggest_batch_id(a[0])
            return portal.create_batch(batch_id, a[0], a[1], a[2], a[3])

        return {
            "wallet": lambda a: portal.generate_wallet() and None,
            "key": lambda a: portal.login(a[0]) if a else self._usage("key"),
            "register": lambda a: portal.register(a[0], a[1], a[2] if len(a) > 2 else None) if len(a) >= 2 else self._usage("register"),
            "continue": lambda a: portal.continue_to_dashboard(),
            "dashboard": lambda a: portal.load_dashboard(),
            "batch": create_batch,
            "logout": lambda a: portal.logout(),
        }

    def _usage(self, command: str) -> None:
        for line in HELP[self.role]:
            if line.startswith(command):
                print(f"usage: {line}")
                return
        print(f"usage: {command}")

    def scan_with_camera(self) -> Optional[Notice]:
        """Open the camera for one decode; the camera is released on every exit path."""
        timeout = self.config.camera_scan_timeout if self.config else 30
        print(f"Point the camera at a QR code ({timeout}s)...")
        try:
            event = self.camera.scan_once(timeout=timeout)
        except CameraError as e:
            if self.logger:
                self.logger.error(f"Camera unavailable: {e}")
            print("Camera unavailable. Use 'scan <code>' to enter the code manually.")
            return None
        if event is None:
            print("No QR code detected.")
            return None
        return self.customer.submit_scan(event.qr_code)

    def handle_command(self, line: str) -> None:
        try:
            parts = shlex.split(line)
        except ValueError as e:
            print(f"Could not parse command: {e}")
            return
        if not parts:
            return

        command, args = parts[0].lower(), parts[1:]
        if command in ("quit", "exit"):
            self.shutdown_requested = True
            return
        if command == "help":
            print("Global: role <customer|restaurant|farmer>, help, quit")
            for entry in HELP[self.role]:
                print(f"  {entry}")
            return
        if command == "role":
            if args and args[0].lower() in ROLES:
                self.role = args[0].lower()
                self.render()
            else:
                print(f"Roles: {', '.join(ROLES)}")
            return

        commands = {
            "customer": self._customer_commands,
            "restaurant": self._restaurant_commands,
            "farmer": self._farmer_commands,
        }[self.role]()
        handler = commands.get(command)
        if handler is None:
            print(f"Unknown command '{command}'. Type 'help'.")
            return

        self._show_notice(handler(args))
        self.render()

    def run_main_loop(self) -> None:
        """Read commands until quit or end of input"""
        if self.logger:
            self.logger.info("Starting command loop")

        print("Farm Passport. Type 'help' for commands.")
        self.render()
        while not self.shutdown_requested:
            try:
                line = input(f"{self.role}> ")
            except (EOFError, KeyboardInterrupt):
                print()
                break
            try:
                self.handle_command(line)
            except Exception as e:
                if self.logger:
                    self.logger.exception(f"Command failed: {e}")
                print(f"Error: {e}")

        if self.logger:
            self.logger.info("Command loop ended")

    def shutdown(self) -> None:
        """Clean shutdown"""
        if self.camera:
            self.camera.stop_scanning()
        if self.farmer:
            self.farmer.logout()
        close_database()
        if self.logger:
            self.logger.info("Shutdown complete")

    def print_config(self) -> None:
        """Print current environment variables and configuration"""
        print("=== Farm Passport Configuration ===")
        print()

        print("Environment Variables:")
        print("-" * 40)
        env_vars = [
            'BASE_API_URL',
            'API_TIMEOUT',
            'DATABASE_URL',
            'CAMERA_SOURCE',
            'CAMERA_SCAN_TIMEOUT',
            'EXPLORER_TX_URL',
            'ALLOW_DIRECT_UNLOCK',
            'LOG_LEVEL',
            'LOG_FILE',
            'DEBUG',
            'APP_VERSION'
        ]

        for var in env_vars:
            value = os.getenv(var, 'NOT SET')
            print(f"{var:<20} = {value}")

        print()
        print("Effective Configuration:")
        print("-" * 40)
        config = self.config or get_config()
        for key, value in sorted(config.get_all().items()):
            print(f"{key:<20} = {value}")

        print()
        print("=" * 50)

    def run(self, debug: bool = False) -> int:
        """Run the complete application"""
        try:
            self.setup_signal_handlers()
            self.load_configuration(debug=debug)
            self.setup_logging()

            self.initialize_database()
            self.initialize_components()

            if self.logger and self.config:
                self.logger.info(f"Farm Passport v{self.config.app_version} started")

            self.run_main_loop()
            return 0

        except Exception as e:
            print(f"Application error: {e}")
            return 1
        finally:
            self.shutdown()


def main() -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Farm Passport console client")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--check-config", action="store_true", help="Print current environment variables and configuration")

    args = parser.parse_args()

    app = FarmPassportApp()

    if args.check_config:
        app.print_config()
        return 0

    return app.run(debug=args.debug)


if __name__ == "__main__":
    sys.exit(main())
