from unittest import mock

import pytest
import requests

from controllers.notification_controller import NotificationDispatcher, NOTIFICATION_ID


@pytest.fixture
def http_dispatcher(config):
    return NotificationDispatcher(config)


def test_sends_payload_with_stable_id(http_dispatcher):
    with mock.patch('controllers.notification_controller.requests.post') as post:
        post.return_value.raise_for_status.return_value = None

        assert http_dispatcher.send_notification("Temperature changed", "Current ambient temperature is 23.0 C")

    post.assert_called_once()
    args, kwargs = post.call_args
    assert args == ('http://notify.test/notify',)
    assert kwargs['json'] == {
        'id': NOTIFICATION_ID,
        'channel_id': 'ambient-temperature',
        'title': 'Temperature changed',
        'message': 'Current ambient temperature is 23.0 C',
        'auto_cancel': True,
    }
    assert kwargs['timeout'] == 5.0
    assert http_dispatcher.sent_count == 1
    assert http_dispatcher.get_info()['last_sent'] is not None


def test_without_permission_request_is_dropped(make_config):
    dispatcher = NotificationDispatcher(make_config(notifications={'permission_granted': False}))

    with mock.patch('controllers.notification_controller.requests.post') as post:
        assert dispatcher.send_notification("t", "b") is False

    post.assert_not_called()
    assert dispatcher.dropped_count == 1


def test_permission_result_enables_delivery(make_config):
    dispatcher = NotificationDispatcher(make_config(notifications={'permission_granted': False}))
    assert dispatcher.request_permission() is False

    dispatcher.on_permission_result(True)

    assert dispatcher.request_permission() is True
    with mock.patch('controllers.notification_controller.requests.post') as post:
        assert dispatcher.send_notification("t", "b") is True
    post.assert_called_once()


@pytest.mark.parametrize("error", [
    requests.exceptions.Timeout("slow"),
    requests.exceptions.ConnectionError("refused"),
])
def test_network_errors_drop_without_retry(http_dispatcher, error):
    with mock.patch('controllers.notification_controller.requests.post', side_effect=error) as post:
        assert http_dispatcher.send_notification("t", "b") is False

    assert post.call_count == 1
    assert http_dispatcher.dropped_count == 1
    assert http_dispatcher.last_error is not None


def test_http_error_is_dropped(http_dispatcher):
    with mock.patch('controllers.notification_controller.requests.post') as post:
        post.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("500 Server Error")

        assert http_dispatcher.send_notification("t", "b") is False

    assert "500" in http_dispatcher.last_error


def test_disabled_notifications_are_not_sent(make_config):
    dispatcher = NotificationDispatcher(make_config(notifications={'enabled': False}))

    with mock.patch('controllers.notification_controller.requests.post') as post:
        assert dispatcher.send_notification("t", "b") is False

    post.assert_not_called()


def test_missing_url_is_dropped(make_config):
    dispatcher = NotificationDispatcher(make_config(notifications={'url': None}))

    with mock.patch('controllers.notification_controller.requests.post') as post:
        assert dispatcher.send_notification("t", "b") is False

    post.assert_not_called()
    assert dispatcher.dropped_count == 1


def test_simulated_dispatcher_records_notifications(dispatcher):
    dispatcher.send_notification("Temperature changed", "Current ambient temperature is 21.0 C")

    assert dispatcher.sent[0]['message'] == "Current ambient temperature is 21.0 C"
    assert dispatcher.get_info()['test_mode'] is True
