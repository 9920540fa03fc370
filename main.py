"""FormBridge: privacy-preserving form capture and fill."""
import logging
from pathlib import Path

from formbridge.browser.tabs import TabManager
from formbridge.core.config import Settings
from formbridge.core.errors import TransportError
from formbridge.core.logging import setup_logging
from formbridge.host import (
    CaptureStore,
    ExtensionBridge,
    ExtensionClient,
    FillCoordinator,
    format_schema_for_agent,
    summarize_fill,
)
from formbridge.privacy import PersonalDataRecord, TokenFillProposal, load_personal_data
from formbridge.protocol import ExtensionRuntime, TimeoutPolicy
from formbridge.relay import ExtensionRelay
from formbridge.templates.matcher import TemplateMatcher

logger = logging.getLogger(__name__)

SETTINGS_PATH = Path("config/settings.yaml")


def load_record(settings: Settings) -> PersonalDataRecord:
    path = settings.personal_data_path
    if path is None or not path.exists():
        logger.warning(f"Personal data not found: {path}. Every fill will need user input.")
        return PersonalDataRecord()
    return load_personal_data(path)


def parse_fill_args(args: str) -> dict[str, str]:
    """Parse ``field=TOKEN`` pairs separated by whitespace."""
    mappings = {}
    for pair in args.split():
        field_id, sep, token = pair.partition("=")
        if not sep or not field_id or not token:
            raise ValueError(f"Expected field=TOKEN, got {pair!r}")
        mappings[field_id] = token
    return mappings


def print_history(client: ExtensionClient) -> None:
    response = client.list_captures()
    if response is None or not response.success:
        print("History unavailable")
        return
    if not response.captures:
        print("No captures yet")
        return
    for i, entry in enumerate(response.captures):
        marker = "*" if i == response.selected_index else " "
        schema = entry.form_schema
        print(f" {marker} [{i}] #{entry.sequence} {schema.title or schema.url} ({len(schema.fields)} fields)")


def main() -> None:
    """Main entry point - interactive mode."""
    setup_logging("INFO")
    logger.info("=== FormBridge Starting ===")

    settings = Settings.from_yaml(SETTINGS_PATH) if SETTINGS_PATH.exists() else Settings()
    policy = TimeoutPolicy.from_config(settings.timeouts)
    matcher = TemplateMatcher()

    relay = ExtensionRelay(
        tabs_factory=lambda: TabManager.open(settings.browser),
        matcher=matcher,
        config=settings.extension,
        scanner_config=settings.scanner,
        fill_config=settings.fill,
    )
    runtime = ExtensionRuntime()
    runtime.install(relay.extension_id, relay)
    relay.start()

    bridge = ExtensionBridge(runtime, relay.extension_id, policy)
    client = ExtensionClient(runtime, relay.extension_id, policy)
    if not bridge.connect():
        logger.error("Failed to connect to the relay.")
        relay.stop()
        return

    coordinator = FillCoordinator(
        capture=bridge.capture_page,
        dispatch=bridge.fill_form,
        record=load_record(settings),
        store=CaptureStore.from_config(settings.store),
        matcher=matcher,
    )

    try:
        print("\n" + "=" * 50)
        print("FormBridge Ready")
        print("=" * 50)
        print("\nCommands:")
        print("  ping               - Check the relay")
        print("  capture            - Capture the active tab")
        print("  show               - Show the current capture")
        print("  auto               - Fill from the detected template")
        print("  fill f=TOKEN ...   - Fill fields with placeholder tokens")
        print("  history            - List relay captures")
        print("  select <n>         - Select a capture")
        print("  remove <n>         - Remove a capture")
        print("  quit               - Exit")
        print()

        while True:
            try:
                cmd = input("formbridge> ").strip()
            except (EOFError, KeyboardInterrupt):
                break

            if not cmd:
                continue

            parts = cmd.split(maxsplit=1)
            command = parts[0].lower()
            args = parts[1] if len(parts) > 1 else ""

            try:
                if command in ("quit", "exit"):
                    break

                elif command == "ping":
                    response = client.ping()
                    print(f"Relay v{response.version}" if response else "No response")

                elif command == "capture":
                    schema = coordinator.capture()
                    if schema is None:
                        print(f"Capture failed: {coordinator.last_error}")
                    else:
                        print(format_schema_for_agent(schema))

                elif command == "show":
                    schema = coordinator.schema
                    print(format_schema_for_agent(schema) if schema else "Nothing captured yet")

                elif command == "auto":
                    proposal = coordinator.propose_from_template()
                    if proposal is None:
                        print("No known form template on this page")
                        continue
                    print(summarize_fill(coordinator.fill(proposal)))

                elif command == "fill":
                    if not args:
                        print("Usage: fill <field_id>=<TOKEN> ...")
                        continue
                    proposal = TokenFillProposal(mappings=parse_fill_args(args))
                    print(summarize_fill(coordinator.fill(proposal)))

                elif command == "history":
                    print_history(client)

                elif command in ("select", "remove"):
                    if not args.isdigit():
                        print(f"Usage: {command} <index>")
                        continue
                    index = int(args)
                    if command == "select":
                        response = client.select_capture(index)
                        if response and response.success and response.form_schema:
                            coordinator.record_capture(response.form_schema)
                            print(format_schema_for_agent(response.form_schema))
                        else:
                            print(response.error if response else "No response")
                    else:
                        client.remove_capture(index)
                        print_history(client)

                else:
                    print(f"Unknown command: {command}")

            except ValueError as e:
                print(f"Invalid input: {e}")
            except TransportError as e:
                print(f"Relay unavailable: {e}")

    finally:
        bridge.disconnect()
        relay.stop()

    logger.info("=== FormBridge Stopped ===")


if __name__ == "__main__":
    main()
