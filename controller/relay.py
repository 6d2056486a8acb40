"""
Relay controller bridging the monitor, actuator and gateway devices.

Threads:
- sender: drains the command queue and writes each message to the device
  bound to the command's slot
- receiver (one per bound monitor/actuator): decodes incoming messages and
  turns alerts into commands for the sender

The gateway round trip is synchronous and runs on the caller's thread.

Classes:
    RelayController: Owns the device connections and the relay threads
"""

import logging
import threading
from types import MappingProxyType
from typing import Callable

from controller.command_queue import Command, DeviceSlot, LinkedBlockingQueue
from transport import Transport
from utils.coap import make_coap_request
from utils.experiments import MeasurementResult, measure_execution_time
from utils.faults import FaultSeverity, RelayError, RelayFault
from utils.message import MESSAGE_SIZE, MessageError, MessageType, WireMessage, decode_message

logger = logging.getLogger(__name__)

PREAMBLE_SIZE = 15          # Bytes emitted by the emulated hardware on connect
COAP_RESPONSE_SIZE = 54     # Length of the translated HTTP request from the gateway
DEFAULT_MOISTURE = 100


class RelayController:
    """
    Routes messages between devices through a single ordered command queue.

    Device slots are bound once at construction and never change. A slot
    given None stays unbound: commands addressed to it are dropped and no
    receiver thread is started for it.
    """

    def __init__(
        self,
        monitor: Transport | None = None,
        actuator: Transport | None = None,
        gateway: Transport | None = None,
        *,
        queue: LinkedBlockingQueue[Command] | None = None,
        preamble_size: int = PREAMBLE_SIZE,
        response_size: int = COAP_RESPONSE_SIZE,
        on_fault: Callable[[RelayFault], None] | None = None,
    ):
        """
        Initialize the controller.

        Args:
            monitor: Connection to the soil-moisture monitor, if any
            actuator: Connection to the water actuator, if any
            gateway: Connection to the CoAP-HTTP gateway, if any
            queue: Command queue to drain (a new one is created if omitted)
            preamble_size: Bytes to discard from each device before real traffic
            response_size: Bytes to read for each gateway reply
            on_fault: Called from the reporting thread for every fault
        """
        self._sockets = MappingProxyType({
            DeviceSlot.MONITOR: monitor,
            DeviceSlot.ACTUATOR: actuator,
            DeviceSlot.GATEWAY: gateway,
        })
        self._queue: LinkedBlockingQueue[Command] = queue if queue is not None else LinkedBlockingQueue()
        self._preamble_size = preamble_size
        self._response_size = response_size
        self._on_fault = on_fault
        self._faults: list[RelayFault] = []
        self._faults_lock = threading.Lock()
        self._threads: list[threading.Thread] = []
        self._started = False
        self.defect_detected = threading.Event()

    @property
    def queue(self) -> LinkedBlockingQueue[Command]:
        return self._queue

    @property
    def threads(self) -> list[threading.Thread]:
        return list(self._threads)

    def is_bound(self, slot: DeviceSlot) -> bool:
        return self._sockets[slot] is not None

    def offer(self, command: Command) -> None:
        """Queue a command for the sender thread."""
        self._queue.offer(command)

    def faults(self) -> list[RelayFault]:
        """Snapshot of every fault reported so far."""
        with self._faults_lock:
            return list(self._faults)

    # ─── Thread Management ─────────────────────────────────────────────────

    def start(self) -> None:
        """
        Start the sender thread and one receiver per bound monitor/actuator.

        Threads run for the lifetime of the process; there is no stop().
        """
        if self._started:
            raise RuntimeError("Controller already started")
        self._started = True

        sender = threading.Thread(target=self._sender_loop, daemon=True, name="RelaySender")
        sender.start()
        self._threads.append(sender)

        for slot in (DeviceSlot.MONITOR, DeviceSlot.ACTUATOR):
            if self.is_bound(slot):
                receiver = threading.Thread(
                    target=self._receiver_loop,
                    args=(slot,),
                    daemon=True,
                    name=f"{slot.label}Receiver",
                )
                receiver.start()
                self._threads.append(receiver)

        if self.is_bound(DeviceSlot.GATEWAY):
            self.discard_preamble(DeviceSlot.GATEWAY)

        logger.info(
            f"Relay controller started ({len(self._threads) - 1} receiver(s), "
            f"bound: {', '.join(s.label for s in DeviceSlot if self.is_bound(s)) or 'none'})"
        )

    def _report(self, severity: FaultSeverity, slot: DeviceSlot, reason: str) -> RelayFault:
        fault = RelayFault(severity, slot.label, reason)
        with self._faults_lock:
            self._faults.append(fault)

        if severity is FaultSeverity.DEFECT:
            logger.critical(f"{slot.label}: {reason}")
            self.defect_detected.set()
        elif severity is FaultSeverity.CONNECTION:
            logger.error(f"{slot.label}: {reason}")
        else:
            logger.warning(f"{slot.label}: {reason}")

        if self._on_fault is not None:
            try:
                self._on_fault(fault)
            except Exception as e:
                logger.error(f"Fault handler failed for {fault}: {e}")
        return fault

    # ─── Sender ────────────────────────────────────────────────────────────

    def _sender_loop(self) -> None:
        logger.debug("Sender thread started")
        while True:
            self.deliver(self._queue.poll())

    def deliver(self, command: Command) -> bool:
        """
        Write one command's message to its destination device.

        Failures are advisory: the command is dropped, never re-queued.

        Returns:
            True if the message was written
        """
        sock = self._sockets[command.slot]
        if sock is None:
            self._report(
                FaultSeverity.ADVISORY,
                command.slot,
                f"Ignoring {command.message} sent to the {command.slot.label} device that is not connected.",
            )
            return False

        if not sock.send(command.message.encode()):
            self._report(
                FaultSeverity.ADVISORY,
                command.slot,
                f"Failed to send {command.message} to the {command.slot.label} device.",
            )
            return False

        logger.debug(f"Sent {command.message} to {command.slot.label}")
        return True

    # ─── Receivers ─────────────────────────────────────────────────────────

    def discard_preamble(self, slot: DeviceSlot) -> bool:
        """Read and drop the fixed preamble the emulated device sends first."""
        sock = self._sockets[slot]
        if sock is None:
            raise RelayError(RelayFault(
                FaultSeverity.DEFECT, slot.label, "No connection to read the preamble from"
            ))

        logger.info(f"Receiving {self._preamble_size}-byte preamble from the {slot.label} device")
        if sock.receive_exactly(self._preamble_size) is None:
            self._report(
                FaultSeverity.ADVISORY,
                slot,
                "Failed to receive the preamble. The controller may not function properly.",
            )
            return False
        return True

    def _receiver_loop(self, slot: DeviceSlot) -> None:
        sock = self._sockets[slot]
        self.discard_preamble(slot)

        while True:
            raw = sock.receive_exactly(MESSAGE_SIZE)
            if raw is None:
                self._report(
                    FaultSeverity.CONNECTION,
                    slot,
                    f"Failed to receive the message from the {slot.label} device. Receiver stopped.",
                )
                return

            try:
                message = decode_message(raw)
            except MessageError as e:
                logger.error(f"Received an invalid message from the {slot.label} device: {e}")
                continue

            if self.dispatch(slot, message) is not None:
                # Only defects are returned; stop reading from a mismatched peer
                return

    def dispatch(self, source: DeviceSlot, message: WireMessage) -> RelayFault | None:
        """
        Act on one decoded message.

        Alerts are relayed through the queue, reports are logged. Any other
        tag means controller and device disagree on the protocol version.

        Args:
            source: Slot the message arrived on
            message: Decoded message

        Returns:
            A DEFECT fault if the message type is not handled, else None
        """
        kind = message.kind

        if kind is MessageType.MONITOR_USER_STACK:
            logger.info(f"Monitor device reports that the shared user stack starts at 0x{message.data:08x}.")
        elif kind is MessageType.ACTUATOR_USER_STACK:
            logger.info(f"Actuator device reports that the shared user stack starts at 0x{message.data:08x}.")
        elif kind is MessageType.GATEWAY_USER_STACK:
            logger.info(f"Gateway device reports that a thread stack starts at 0x{message.data:08x}.")
        elif kind is MessageType.SOIL_DRY_ALERT:
            logger.info(f"Received a Soil Dry Alert from the {source.label} device.")
            self._queue.offer(Command.relay_to_actuator(message))
        elif kind is MessageType.SOIL_WET_ALERT:
            logger.info(f"Received a Soil Wet Alert from the {source.label} device.")
            self._queue.offer(Command.relay_to_actuator(message))
        elif kind is MessageType.ACK_SOIL_WET:
            logger.info(f"Received an Ack Soil Wet from the {source.label} device.")
            self._queue.offer(Command.relay_to_monitor(message))
        elif kind is MessageType.RUN_OUT_OF_WATER_ALERT:
            logger.info(f"Received a Run Out Of Water Alert from the {source.label} device.")
        else:
            return self._report(
                FaultSeverity.DEFECT,
                source,
                f"Message type is [{message}]. Should never reach here.",
            )
        return None

    # ─── CoAP-HTTP Gateway ─────────────────────────────────────────────────

    def exchange_coap_message(self, request: bytes) -> bytes:
        """
        Send a CoAP request to the gateway and block for the translated reply.

        Returns:
            The raw reply (response_size bytes)

        Raises:
            RelayError: (CONNECTION) if the gateway is unbound or I/O fails
        """
        sock = self._sockets[DeviceSlot.GATEWAY]
        if sock is None:
            raise RelayError(RelayFault(
                FaultSeverity.CONNECTION, DeviceSlot.GATEWAY.label, "The gateway device is not connected."
            ))
        if not sock.send(request):
            raise RelayError(RelayFault(
                FaultSeverity.CONNECTION, DeviceSlot.GATEWAY.label, "Failed to send the CoAP request message."
            ))
        response = sock.receive_exactly(self._response_size)
        if response is None:
            raise RelayError(RelayFault(
                FaultSeverity.CONNECTION, DeviceSlot.GATEWAY.label, "Failed to receive the HTTP message."
            ))
        return response

    def exchange_coap_once(self, moisture: int = DEFAULT_MOISTURE) -> str:
        """One round trip; returns the translated HTTP request as text."""
        response = self.exchange_coap_message(make_coap_request(moisture))
        text = response.rstrip(b"\x00").decode("utf-8", errors="replace")
        logger.info(f"Received a HTTP request message:\n{text}")
        return text

    def measure_coap_round_trips(
        self,
        trials: int,
        delay_ms: float,
        moisture: int = DEFAULT_MOISTURE,
    ) -> MeasurementResult:
        """Time `trials` serial round trips, sleeping `delay_ms` between them."""
        request = make_coap_request(moisture)
        return measure_execution_time(trials, delay_ms / 1000, self.exchange_coap_message, request)

    def run_gateway_experiment(self, trials: int, delay_ms: float) -> MeasurementResult:
        """Measure gateway round trips and log the latency summary."""
        logger.info(f"Running the gateway experiment: trials={trials}, delay={delay_ms}ms")
        result = self.measure_coap_round_trips(trials, delay_ms)
        summary = result.summary()
        logger.info(
            f"Execution time over {summary['trials']} trial(s): min={summary['min_ns']}ns "
            f"max={summary['max_ns']}ns med={summary['median_ns']}ns "
            f"avg={summary['mean_ns']:.2f}ns std={summary['sd_ns']:.2f}ns"
        )
        return result
