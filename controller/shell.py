"""
Interactive "Commander" shell for driving the relay controller.

Each line is split into a verb and arguments:

    soil <level>             set the monitor's moisture level
    water <0|1>              empty or fill the actuator's bottle
    dry | wet                send a soil alert straight to the actuator
    coap                     one CoAP round trip through the gateway
    gateway <trials> <ms>    timed gateway round trips
    help                     list the verbs
    exit                     leave the shell
"""

import logging
import sys
from typing import TextIO

from controller.command_queue import Command
from controller.relay import RelayController
from utils.faults import RelayError

logger = logging.getLogger(__name__)

PROMPT = "Commander > "


class CommandShell:
    """Turns typed lines into queue entries and gateway exchanges."""

    def __init__(
        self,
        controller: RelayController,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ):
        self._controller = controller
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout

    def _print(self, text: str = "") -> None:
        print(text, file=self._stdout)

    def run(self) -> None:
        """Prompt until `exit` or end of input."""
        while True:
            self._stdout.write(PROMPT)
            self._stdout.flush()
            line = self._stdin.readline()
            if not line:
                self._print()
                break
            if not self.execute(line):
                break

    def execute(self, line: str) -> bool:
        """
        Run one command line.

        Returns:
            False if the shell should exit, True otherwise
        """
        args = line.split()
        if not args:
            return True

        verb, params = args[0], args[1:]
        logger.debug(f"Shell command: {verb} {params}")
        try:
            return self._execute(verb, params)
        except ValueError as e:
            self._print(f"Invalid argument: {e}")
        except RelayError as e:
            self._print(f"Gateway exchange failed: {e}")
        return True

    def _execute(self, verb: str, params: list[str]) -> bool:
        if verb == "exit":
            self._print("Goodbye.")
            return False

        if verb == "help":
            self._print(__doc__.split("\n\n", 1)[1].rstrip())
        elif verb == "soil":
            if len(params) != 1:
                self._print("Usage: soil level")
                self._print("e.g. `soil 30` to set the moisture level to 30%.")
            else:
                self._controller.offer(Command.change_soil_moisture(int(params[0])))
        elif verb == "water":
            if len(params) != 1:
                self._print("Usage: water status")
                self._print("e.g. `water 1` to fill the bottle with water.")
                self._print("     `water 0` to empty the bottle.")
            else:
                self._controller.offer(Command.change_water_status(int(params[0]) != 0))
        elif verb == "dry":
            self._controller.offer(Command.dry_soil_alert())
        elif verb == "wet":
            self._controller.offer(Command.wet_soil_alert())
        elif verb == "coap":
            text = self._controller.exchange_coap_once()
            self._print("Received a HTTP request message:")
            self._print(text)
        elif verb == "gateway":
            if len(params) != 2:
                self._print("Usage: gateway trials delay")
                self._print("where `trials` specify the number of trials;")
                self._print("      `delay` specify the amount of time in milliseconds between each trial.")
            else:
                trials, delay_ms = int(params[0]), int(params[1])
                self._print("Running the gateway experiment...")
                self._print(f"\tTrials = {trials}; Delay = {delay_ms} milliseconds.")
                result = self._controller.run_gateway_experiment(trials, delay_ms)
                self._print("Execution time:")
                self._print(f"- Min = {result.min()} nanoseconds.")
                self._print(f"- Max = {result.max()} nanoseconds.")
                self._print(f"- Med = {result.median()} nanoseconds.")
                self._print(f"- Avg = {result.mean():.2f} nanoseconds.")
                self._print(f"- Std = {result.sd():.2f} nanoseconds.")
        else:
            self._print(f"Unknown command: [{verb}].")
        return True
