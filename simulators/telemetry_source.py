#!/usr/bin/env python3
"""
Telemetry Source Simulator
Serves machine telemetry over HTTP in the same JSON shape as the real source:

    {"Sent data": {"Type": ..., "Air Temp": ..., "Process Temp": ...,
                   "Rotational Speed": ..., "Torque": ..., "Tool Wear": ...},
     "API Response": {"Health Status": ...}}

Every GET returns a fresh reading. A configurable share of requests fails
with HTTP 503 to exercise the monitor's retry path.
"""
import argparse
import http.server
import json
import logging
import random
import socketserver

logger = logging.getLogger(__name__)

MACHINE_TYPES = ["L", "M", "H"]
FAILURE_STATUSES = [
    "Tool Wear Failure",
    "Heat Dissipation Failure",
    "Power Failure",
    "Overstrain Failure",
    "Random Failures"
]


class TrendBasedGenerator:
    """Trend-based value generator for realistic gradual changes"""

    def __init__(self, low_limit: float, high_limit: float, base_value: float = None):
        self.low_limit = low_limit
        self.high_limit = high_limit
        self.current_value = base_value if base_value is not None else (low_limit + high_limit) / 2
        self.trend_direction = random.choice([-1, 1])
        self.range = high_limit - low_limit
        self.step_size = self.range * random.uniform(0.01, 0.05)
        self.noise_level = self.range * 0.01

    def generate_value(self) -> float:
        if random.random() < 0.02:
            self.trend_direction *= -1
            self.step_size = self.range * random.uniform(0.01, 0.05)

        self.current_value += self.trend_direction * self.step_size
        self.current_value += random.uniform(-self.noise_level, self.noise_level)

        if self.current_value < self.low_limit:
            self.current_value = self.low_limit
            self.trend_direction = 1
        elif self.current_value > self.high_limit:
            self.current_value = self.high_limit
            self.trend_direction = -1

        return round(self.current_value, 2)


class MachineSimulator:
    """Produces telemetry readings for one simulated machine"""

    def __init__(self, failure_probability: float = 0.05):
        self.failure_probability = failure_probability
        self.machine_type = random.choice(MACHINE_TYPES)
        self.air_temp = TrendBasedGenerator(295.0, 305.0)
        self.process_temp = TrendBasedGenerator(305.0, 314.0)
        self.rotational_speed = TrendBasedGenerator(1160.0, 2890.0, base_value=1500.0)
        self.torque = TrendBasedGenerator(3.0, 77.0, base_value=40.0)
        self.tool_wear = 0.0

    def next_reading(self) -> dict:
        self.tool_wear = (self.tool_wear + random.uniform(0, 2)) % 250
        if random.random() < self.failure_probability:
            status = random.choice(FAILURE_STATUSES)
        else:
            status = "No Failure"
        return {
            "Sent data": {
                "Type": self.machine_type,
                "Air Temp": self.air_temp.generate_value(),
                "Process Temp": self.process_temp.generate_value(),
                "Rotational Speed": self.rotational_speed.generate_value(),
                "Torque": self.torque.generate_value(),
                "Tool Wear": round(self.tool_wear, 2)
            },
            "API Response": {
                "Health Status": status
            }
        }


def make_handler(simulator: MachineSimulator, error_rate: float):
    class TelemetryHandler(http.server.BaseHTTPRequestHandler):
        """HTTP request handler serving telemetry readings"""

        def log_message(self, format, *args):
            logger.info("%s - %s", self.client_address[0], format % args)

        def do_GET(self):
            if random.random() < error_rate:
                self.send_response(503)
                self.end_headers()
                return

            body = json.dumps(simulator.next_reading()).encode("utf-8")
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

    return TelemetryHandler


def main():
    parser = argparse.ArgumentParser(description="Simulated machine telemetry source")
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--error-rate", type=float, default=0.1,
                        help="share of requests answered with HTTP 503")
    parser.add_argument("--failure-probability", type=float, default=0.05,
                        help="share of readings reporting a failure status")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(message)s')
    simulator = MachineSimulator(failure_probability=args.failure_probability)
    handler = make_handler(simulator, args.error_rate)

    socketserver.TCPServer.allow_reuse_address = True
    with socketserver.ThreadingTCPServer((args.host, args.port), handler) as httpd:
        logger.info("Telemetry source running on http://%s:%d/", args.host, args.port)
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Stopping telemetry source")


if __name__ == "__main__":
    main()
