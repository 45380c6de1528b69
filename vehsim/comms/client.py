# Messaging client
# Nodes advertise, publish and subscribe to named topics through a broker.

import logging
import threading
from dataclasses import dataclass
from queue import Empty, Queue
from typing import Any, Callable, Dict, List, Optional

from ..core.errors import ContractViolation


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeInfo:
    """Entry of the node list returned by the broker."""
    name: str


class TopicBroker:
    """In-process rendezvous point for clients.

    Keeps the registered nodes, the advertised topics and their
    subscribers. All methods are thread-safe.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._nodes: Dict[str, "Client"] = {}
        self._topics: Dict[str, Dict[str, Any]] = {}
        self._subscribers: Dict[str, List["Client"]] = {}

    def register_node(self, client: "Client") -> None:
        with self._lock:
            if client.name in self._nodes:
                raise ContractViolation(f"Node name already in use: {client.name}")
            self._nodes[client.name] = client
        logger.debug(f"Node '{client.name}' registered")

    def unregister_node(self, name: str) -> None:
        with self._lock:
            self._nodes.pop(name, None)
            for subs in self._subscribers.values():
                subs[:] = [c for c in subs if c.name != name]
        logger.debug(f"Node '{name}' unregistered")

    def list_nodes(self) -> List[NodeInfo]:
        with self._lock:
            return [NodeInfo(name) for name in sorted(self._nodes)]

    def list_topics(self) -> Dict[str, str]:
        """Advertised topics and their message types."""
        with self._lock:
            return {t: info["type"] for t, info in self._topics.items()}

    def advertise(self, topic: str, msg_type: str, node_name: str) -> None:
        with self._lock:
            existing = self._topics.get(topic)
            if existing is not None and existing["type"] != msg_type:
                raise ContractViolation(
                    f"Topic '{topic}' already advertised with type {existing['type']}, not {msg_type}"
                )
            info = self._topics.setdefault(topic, {"type": msg_type, "publishers": set()})
            info["publishers"].add(node_name)

    def subscribe(self, topic: str, client: "Client") -> None:
        with self._lock:
            subs = self._subscribers.setdefault(topic, [])
            if client not in subs:
                subs.append(client)

    def publish(self, topic: str, message: Any) -> int:
        """Queue a message for every subscriber of a topic.

        Returns:
            Number of subscribers the message was delivered to
        """
        with self._lock:
            if topic not in self._topics:
                raise ContractViolation(f"Publishing to unadvertised topic '{topic}'")
            subs = list(self._subscribers.get(topic, []))
        for client in subs:
            client._deliver(topic, message)
        return len(subs)


class Client:
    """Connection of a node to a TopicBroker.

    connect() registers the node and starts a worker thread that delivers
    incoming messages to the subscription callbacks. shutdown() stops it
    and blocks until the thread has exited; it is safe to call twice.

    Example:
        client = Client("joystick", broker)
        client.connect()
        client.advertise_topic("r1/cmd")
        client.publish_topic("r1/cmd", {"v": 1.0, "omega": 0.2})
        client.shutdown()
    """

    _STOP = object()

    def __init__(self, name: str = "anonymous", broker: Optional[TopicBroker] = None):
        """Initialize client.

        Args:
            name: Node name, unique per broker
            broker: Broker to connect to (a private one when None)
        """
        self.name = name
        self.broker = broker if broker is not None else TopicBroker()
        self.inbox: Queue = Queue()
        self.running = False
        self.thread: Optional[threading.Thread] = None
        self._callbacks: Dict[str, List[Callable[[Any], None]]] = {}
        self._callbacks_lock = threading.Lock()
        self.num_delivered = 0
        self.num_callback_errors = 0

    @property
    def connected(self) -> bool:
        return self.running

    def connect(self) -> None:
        """Register with the broker and start the worker. Returns immediately."""
        if self.running:
            raise ContractViolation(f"Client '{self.name}' is already connected")
        self.broker.register_node(self)
        self.running = True
        self.thread = threading.Thread(
            target=self._worker_loop,
            name=f"vehsim-client-{self.name}",
            daemon=True,
        )
        self.thread.start()
        logger.info(f"Client '{self.name}' connected")

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop the worker thread and unregister from the broker."""
        if not self.running:
            return
        self.running = False
        self.broker.unregister_node(self.name)
        self.inbox.put(self._STOP)
        if self.thread is not None:
            self.thread.join(timeout)
            self.thread = None
        logger.info(f"Client '{self.name}' shut down")

    def _require_connected(self, operation: str) -> None:
        if not self.running:
            raise ContractViolation(f"Client '{self.name}': {operation}() before connect()")

    def request_list_of_nodes(self) -> List[NodeInfo]:
        self._require_connected("request_list_of_nodes")
        return self.broker.list_nodes()

    def advertise_topic(self, topic: str, msg_type: str = "dict") -> None:
        self._require_connected("advertise_topic")
        self.broker.advertise(topic, msg_type, self.name)

    def publish_topic(self, topic: str, message: Any) -> int:
        self._require_connected("publish_topic")
        return self.broker.publish(topic, message)

    def subscribe_topic(self, topic: str, callback: Callable[[Any], None]) -> None:
        """Call ``callback(message)`` from the worker thread for each message."""
        self._require_connected("subscribe_topic")
        with self._callbacks_lock:
            self._callbacks.setdefault(topic, []).append(callback)
        self.broker.subscribe(topic, self)

    def _deliver(self, topic: str, message: Any) -> None:
        if self.running:
            self.inbox.put((topic, message))

    def _worker_loop(self) -> None:
        while True:
            item = self.inbox.get()
            if item is self._STOP:
                break
            topic, message = item
            with self._callbacks_lock:
                callbacks = list(self._callbacks.get(topic, []))
            for cb in callbacks:
                try:
                    cb(message)
                except Exception as e:
                    # Errors are counted and logged, the worker keeps running
                    self.num_callback_errors += 1
                    logger.error(f"Client '{self.name}': callback on '{topic}' failed: {e}")
            self.num_delivered += 1

        # Drop whatever arrived after the stop request
        try:
            while True:
                self.inbox.get_nowait()
        except Empty:
            pass

    def __enter__(self) -> "Client":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
