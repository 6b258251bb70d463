#!/usr/bin/env python3
"""
Headless Twin Monitor
Polls the telemetry source for every configured twin until Ctrl+C

Examples:
  python3 scripts/run_monitor.py --twin Lathe-1 --twin Lathe-2
  python3 scripts/run_monitor.py --endpoint http://localhost:8000/ --twin Mill-1
"""
import argparse
import os
import signal
import sys
import threading

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from services.twin_monitor import TwinMonitor  # noqa: E402
from twins.errors import TwinMonitorError  # noqa: E402
from twins.logging_config import setup_logger  # noqa: E402
from twins.settings import MonitorSettings, load_config  # noqa: E402


def main():
    """Main function"""
    parser = argparse.ArgumentParser(description='Headless digital twin telemetry monitor')
    parser.add_argument('--config', help='Path to config.json (default: config/config.json)')
    parser.add_argument('--endpoint', help='Telemetry source URL (overrides config)')
    parser.add_argument('--twin', action='append', dest='twins', default=[],
                        help='Name of a twin to monitor (repeatable)')
    parser.add_argument('--no-console', action='store_true',
                        help='Do not start the remote console')
    args = parser.parse_args()

    try:
        config = load_config(args.config)
        if args.endpoint:
            config["endpoint"] = args.endpoint
        if args.no_console:
            config.setdefault("remote_console", {})["enabled"] = False
        config["twins"] = list(config.get("twins", [])) + args.twins
        settings = MonitorSettings.from_dict(config)
        logger = setup_logger(level=settings.log_level_value, log_file=settings.log_file)
        monitor = TwinMonitor(settings)
    except TwinMonitorError as e:
        print(f"Error starting monitor: {e}", file=sys.stderr)
        sys.exit(1)

    shutdown = threading.Event()

    def signal_handler(sig, frame):
        logger.info("Stopping monitor...")
        shutdown.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    monitor.start()
    shutdown.wait()
    monitor.stop()


if __name__ == "__main__":
    main()
