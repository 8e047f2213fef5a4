"""Shared fixtures: fake KuCoin token endpoint and WebSocket."""

import json
import sys
from pathlib import Path

import pytest
import requests
import websocket

# Ensure the project root is on the path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from models import FeedConfig  # noqa: E402

ENDPOINT = 'wss://ws-api-futures.kucoin.com/'
TOKEN = 'tok-123'

BULLET_BODY = {
  'code': '200000',
  'data': {
    'token': TOKEN,
    'instanceServers': [{
      'endpoint': ENDPOINT,
      'encrypt': True,
      'protocol': 'websocket',
      'pingInterval': 18000,
      'pingTimeout': 10000,
    }],
  },
}


class FakeResponse:
  def __init__(self, body, status: int = 200) -> None:
    self._body = body
    self.status_code = status

  def raise_for_status(self) -> None:
    if self.status_code >= 400:
      raise requests.HTTPError(f'{self.status_code} Server Error')

  def json(self):
    if isinstance(self._body, str):
      return json.loads(self._body)
    return self._body


class FakeWebSocket:
  """Replays the subscription ack and then the queued frames; each frame is (opcode, data) or an exception."""

  def __init__(self, frames=None, ack: str | None = '{"id":"1","type":"ack"}') -> None:
    self.frames = list(frames or [])
    if ack is not None:
      self.frames.insert(0, (websocket.ABNF.OPCODE_TEXT, ack.encode()))
    self.sent: list[dict] = []
    self.closed = False
    self.shut_down = False

  def send(self, payload: str) -> None:
    self.sent.append(json.loads(payload))

  def recv_data(self, control_frame: bool = False):
    if not self.frames:
      raise websocket.WebSocketConnectionClosedException('Connection to remote host was lost.')
    frame = self.frames.pop(0)
    if isinstance(frame, Exception):
      raise frame
    return frame

  def close(self) -> None:
    self.closed = True

  def shutdown(self) -> None:
    self.shut_down = True


def text(payload) -> tuple[int, bytes]:
  raw = payload if isinstance(payload, str) else json.dumps(payload)
  return websocket.ABNF.OPCODE_TEXT, raw.encode()


def close_frame() -> tuple[int, bytes]:
  return websocket.ABNF.OPCODE_CLOSE, b''


@pytest.fixture
def config() -> FeedConfig:
  return FeedConfig(symbol='ETHUSDTM', token_url='https://example.test/bullet-public', display=False)
