import logging
import threading
from typing import Optional

import requests


logger = logging.getLogger(__name__)


class SlackNotifier:
    """
    Post messages to a Slack incoming webhook.  Posting is fire-and-forget: ``notify``
    starts the request on a background thread and returns immediately, and nothing
    that goes wrong with the request is ever raised to the caller.

    The thread is not a daemon thread, so a message that is still in flight when
    the deploy finishes gets delivered before the interpreter exits.
    """

    host: str = 'hooks.slack.com'
    request_timeout: float = 10.0

    def __init__(self) -> None:
        self.last_thread: Optional[threading.Thread] = None

    def url(self, token: str) -> str:
        """
        ``token`` is either the full webhook path ("/services/T000/B000/XXXX") or
        just the part after "/services/".
        """
        if token.startswith('/'):
            path = token
        else:
            path = f'/services/{token}'
        return f'https://{self.host}{path}'

    def post(self, channel: str, token: str, message: str) -> None:
        try:
            response = requests.post(
                self.url(token),
                json={'channel': channel, 'text': message},
                timeout=self.request_timeout
            )
        except requests.RequestException as e:
            logger.error('Failed to send Slack message to %s: %s', channel, e)
        else:
            logger.info('Message Sent: %s', response.text)

    def notify(self, channel: str, token: str, message: str) -> threading.Thread:
        thread = threading.Thread(
            target=self.post,
            args=(channel, token, message),
            name='slack-notify'
        )
        thread.start()
        self.last_thread = thread
        return thread


def rollback_message(service: str, task_definition_arn: str, why: str = 'it did not stabilize') -> str:
    return (
        f'<!channel>\nFailed to deploy `{service}` service using new Task Definition '
        f'`{task_definition_arn}`: {why}, rolling back'
    )
