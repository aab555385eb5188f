"""
Command Line Interface Module

This module provides the command-line interface for evaluating fan
curves and serving the curve API.
"""

import argparse
import logging
import sys
from typing import List, Optional

from ..config import ConfigError, load_config, setup_config
from ..control import CurveSession, CurveStore, FanCurveError, InterpolationMode, sample_curve
from ..sensors import SensorError, SystemTemperatureReader

logger = logging.getLogger(__name__)

LOGGERS = ['fancurve.control', 'fancurve.sensors', 'fancurve.web', 'fancurve.config', 'fancurve.cli']


class CLI:
    """Command-line interface handler"""

    def __init__(self):
        """Initialize CLI handler"""
        self.parser = self._create_parser()
        self.session: Optional[CurveSession] = None

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create command-line argument parser

        Returns:
            Configured argument parser
        """
        parser = argparse.ArgumentParser(
            description="fancurve - Fan curve evaluation and curve API server"
        )

        parser.add_argument(
            "-c", "--config",
            help="Path to configuration file",
            default="/etc/fancurve/config.yaml"
        )

        parser.add_argument(
            "--mode",
            choices=[m.value for m in InterpolationMode],
            help="Override the configured interpolation mode"
        )

        parser.add_argument(
            "--temperature",
            type=float,
            metavar="TEMP",
            help="Print the fan speed for a temperature"
        )

        parser.add_argument(
            "--current",
            action="store_true",
            help="Print the fan speed for the current system temperature"
        )

        parser.add_argument(
            "--sample",
            action="store_true",
            help="Print the sampled curve"
        )

        parser.add_argument(
            "--serve",
            action="store_true",
            help="Serve the curve API over HTTP"
        )

        parser.add_argument(
            "--host",
            help="Host to bind when serving (default from config)"
        )

        parser.add_argument(
            "--port",
            type=int,
            help="Port to bind when serving (default from config)"
        )

        parser.add_argument(
            "--debug",
            action="store_true",
            help="Enable debug logging"
        )

        return parser

    def _print_sample(self, config: dict) -> None:
        """Print the sampled curve as a two-column table"""
        sampling = config["sampling"]
        spec = self.session.snapshot()
        data = sample_curve(spec.points, spec.mode, sampling["start"], sampling["stop"], sampling["step"])
        print(f"{'Temp':>8}  {'Speed':>8}")
        for point in data:
            print(f"{point.x:>8g}  {point.y:>8.1f}")

    def _serve(self, config: dict, host: Optional[str], port: Optional[int]) -> None:
        """Run the Flask development server"""
        from ..web import create_app

        app = create_app(
            self.session,
            store=CurveStore(),
            reader=SystemTemperatureReader.from_config(config),
            sampling=config["sampling"]
        )
        host = host or config["server"]["host"]
        port = port or config["server"]["port"]
        print(f"Server starting on http://{host}:{port}")
        print(f"Configuration auto-saves to {self.session.config_path}")
        app.run(host=host, port=port)

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Run the CLI interface"""
        args = self.parser.parse_args(argv)

        if args.debug:
            for name in LOGGERS:
                logging.getLogger(name).setLevel(logging.DEBUG)

        try:
            config_path = args.config
            if args.serve:
                # Server auto-saves, so make sure the file exists
                config_path = setup_config(config_path)
            config = load_config(config_path)

            self.session = CurveSession.from_config(config, config_path if args.serve else None)
            if args.mode:
                self.session.set_mode(args.mode)

            if args.temperature is not None:
                speed = self.session.speed_for(args.temperature)
                print(f"{args.temperature:g}°C -> {speed:.1f}")

            elif args.current:
                reader = SystemTemperatureReader.from_config(config)
                reading = reader.read()
                speed = self.session.speed_for(reading.value)
                print(f"{reading.value:.1f}°C ({reading.source}) -> {speed:.1f}")

            elif args.sample:
                self._print_sample(config)

            elif args.serve:
                self._serve(config, args.host, args.port)

            else:
                spec = self.session.snapshot()
                print(f"Interpolation mode: {spec.mode.value}")
                for point in spec.points:
                    print(f"  {point.temperature:g}°C -> {point.fan_speed:g}")

        except KeyboardInterrupt:
            print("\nExiting...")

        except (ConfigError, FanCurveError, SensorError, ValueError) as e:
            logger.error(f"Error: {e}")
            sys.exit(1)


def main() -> None:
    """Main entry point"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    cli = CLI()
    cli.run()


if __name__ == "__main__":
    main()
