import json
import pytest
from unittest.mock import MagicMock, patch
from app.rabbitmq.config import RabbitMQConfig
from app.rabbitmq.producer import SettlementEventProducer
from app.rabbitmq.setup import init_rabbitmq


def _producer(enabled=True):
    producer = SettlementEventProducer(RabbitMQConfig(enabled=enabled, events_exchange="test.events"))
    producer.setup = MagicMock()
    connection = MagicMock()
    connection.is_closed = False
    producer.setup.create_connection.return_value = connection
    return producer, connection.channel.return_value


@pytest.mark.unit
class TestSettlementEventProducer:

    def test_publishes_status_change(self):
        producer, channel = _producer()

        assert producer.publish_share_status_changed(["s1", "s2"], "verifying", "user-a") is True

        kwargs = channel.basic_publish.call_args.kwargs
        assert kwargs["exchange"] == "test.events"
        assert kwargs["routing_key"] == "expense_share.status_changed"
        body = json.loads(kwargs["body"])
        assert body["share_ids"] == ["s1", "s2"]
        assert body["status"] == "verifying"
        assert body["actor_id"] == "user-a"
        assert "timestamp" in body
        producer.setup.declare_exchanges.assert_called_once_with(channel)

    def test_publishes_expense_created(self):
        producer, channel = _producer()

        assert producer.publish_expense_created("e1", "ev1", "user-c", ["user-a", "user-c"]) is True

        kwargs = channel.basic_publish.call_args.kwargs
        assert kwargs["routing_key"] == "expense.created"
        assert json.loads(kwargs["body"])["debtor_ids"] == ["user-a", "user-c"]

    def test_disabled_publisher_never_connects(self):
        producer, channel = _producer(enabled=False)

        assert producer.publish_share_status_changed(["s1"], "settled", "user-c") is False
        producer.setup.create_connection.assert_not_called()

    def test_nothing_to_publish(self):
        producer, channel = _producer()

        assert producer.publish_share_status_changed([], "settled", "user-c") is False
        channel.basic_publish.assert_not_called()

    def test_broker_failure_is_reported_not_raised(self):
        producer, channel = _producer()
        channel.basic_publish.side_effect = RuntimeError("connection reset")

        assert producer.publish_share_status_changed(["s1"], "settled", "user-c") is False

    def test_connection_failure_is_reported_not_raised(self):
        producer, _ = _producer()
        producer.setup.create_connection.side_effect = ConnectionError("refused")

        assert producer.publish_expense_created("e1", "ev1", "user-c", []) is False


@pytest.mark.unit
def test_init_skipped_when_disabled():
    with patch("app.rabbitmq.setup.rabbitmq_config", RabbitMQConfig(enabled=False)), \
            patch("app.rabbitmq.setup.RabbitMQSetup") as setup:
        assert init_rabbitmq() is False
    setup.assert_not_called()
