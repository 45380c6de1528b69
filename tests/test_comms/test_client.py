# Tests for the messaging client

import threading

import pytest

from vehsim.comms import Client, NodeInfo, TopicBroker
from vehsim.core.errors import ContractViolation


@pytest.fixture
def broker():
    return TopicBroker()


@pytest.fixture
def client(broker):
    c = Client("world", broker)
    c.connect()
    yield c
    c.shutdown(timeout=5.0)


class TestConnection:

    def test_connect_starts_worker(self, broker):
        """connect() returns with the worker thread running."""
        c = Client("n1", broker)
        c.connect()
        assert c.connected
        assert c.thread.is_alive()
        c.shutdown()
        assert not c.connected

    def test_shutdown_joins_thread(self, broker):
        """After shutdown() the worker thread has exited."""
        c = Client("n1", broker)
        c.connect()
        thread = c.thread
        c.shutdown()
        assert not thread.is_alive()
        assert c.thread is None

    def test_shutdown_twice(self, broker):
        c = Client("n1", broker)
        c.connect()
        c.shutdown()
        c.shutdown()

    def test_shutdown_without_connect(self):
        Client("n1").shutdown()

    def test_connect_twice(self, client):
        with pytest.raises(ContractViolation):
            client.connect()

    def test_duplicate_name(self, broker, client):
        """Node names are unique per broker."""
        with pytest.raises(ContractViolation):
            Client("world", broker).connect()

    def test_reconnect_after_shutdown(self, broker):
        c = Client("n1", broker)
        c.connect()
        c.shutdown()
        c.connect()
        assert c.connected
        c.shutdown()

    def test_context_manager(self, broker):
        with Client("n1", broker) as c:
            assert c.connected
        assert not c.connected

    @pytest.mark.parametrize("call", [
        lambda c: c.request_list_of_nodes(),
        lambda c: c.advertise_topic("t"),
        lambda c: c.publish_topic("t", {}),
        lambda c: c.subscribe_topic("t", print),
    ])
    def test_requires_connection(self, call):
        with pytest.raises(ContractViolation):
            call(Client("n1"))


class TestNodes:

    def test_list_of_nodes(self, broker, client):
        """Every connected node is listed, sorted by name."""
        with Client("joystick", broker):
            nodes = client.request_list_of_nodes()
        assert nodes == [NodeInfo("joystick"), NodeInfo("world")]

    def test_node_removed_on_shutdown(self, broker, client):
        other = Client("joystick", broker)
        other.connect()
        other.shutdown()
        assert [n.name for n in client.request_list_of_nodes()] == ["world"]


class TestTopics:

    def test_publish_subscribe(self, broker, client):
        """Messages reach the subscriber callback on its worker thread."""
        received = []
        done = threading.Event()

        def on_message(msg):
            received.append((msg, threading.current_thread().name))
            done.set()

        with Client("listener", broker) as listener:
            listener.subscribe_topic("r1/pose", on_message)
            client.advertise_topic("r1/pose")
            assert client.publish_topic("r1/pose", {"x": 1.0}) == 1
            assert done.wait(timeout=5.0)

        msg, thread_name = received[0]
        assert msg == {"x": 1.0}
        assert thread_name == "vehsim-client-listener"

    def test_messages_in_order(self, broker, client):
        received = []
        done = threading.Event()

        def on_message(msg):
            received.append(msg)
            if len(received) == 50:
                done.set()

        with Client("listener", broker) as listener:
            listener.subscribe_topic("counter", on_message)
            client.advertise_topic("counter", msg_type="int")
            for i in range(50):
                client.publish_topic("counter", i)
            assert done.wait(timeout=5.0)
        assert received == list(range(50))

    def test_no_subscribers(self, client):
        client.advertise_topic("lonely")
        assert client.publish_topic("lonely", 1) == 0

    def test_unadvertised_topic(self, client):
        with pytest.raises(ContractViolation):
            client.publish_topic("nowhere", 1)

    def test_type_conflict(self, broker, client):
        client.advertise_topic("r1/pose", msg_type="pose")
        with Client("other", broker) as other:
            with pytest.raises(ContractViolation):
                other.advertise_topic("r1/pose", msg_type="twist")

    def test_list_topics(self, broker, client):
        client.advertise_topic("r1/pose", msg_type="pose")
        assert broker.list_topics() == {"r1/pose": "pose"}

    def test_callback_error_counted(self, broker, client):
        """A failing callback is logged and the worker keeps going."""
        done = threading.Event()

        def bad(msg):
            raise RuntimeError("boom")

        with Client("listener", broker) as listener:
            listener.subscribe_topic("t", bad)
            listener.subscribe_topic("t", lambda msg: done.set())
            client.advertise_topic("t")
            client.publish_topic("t", 1)
            assert done.wait(timeout=5.0)
            assert listener.num_callback_errors == 1
            assert listener.thread.is_alive()
