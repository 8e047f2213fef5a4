"""
KuCoin Futures public WebSocket: top-5 depth ladder for one contract.

Flow: POST bullet-public for an endpoint + short-lived token, connect to <endpoint>?token=<token>,
subscribe to /contractMarket/level2Depth5:<symbol>, wait for one response, then replace and render
the LadderSnapshot on every "message" frame until the server closes or the transport fails.
No reconnect: a fresh token is needed for every connection, so a restart is a new run.

Settings from .env: KUCOIN_FUTURES_SYMBOL, KUCOIN_FUTURES_TOKEN_URL (or pass a FeedConfig).
"""

import argparse
import json
import logging
import sys
import time
import uuid
from enum import Enum

import requests
import websocket  # type: ignore[import-untyped]
from dotenv import load_dotenv  # type: ignore[import-untyped]

from errors import CredentialError, FeedError, TransportError
from helpers import extract_levels
from models import FeedConfig, LadderUpdate, WsCredential
from orderbook import LadderSnapshot

load_dotenv()

logger = logging.getLogger(__name__)

DATA_MESSAGE_TYPE = 'message'


class PipelineState(Enum):
  INIT = 'init'
  CREDENTIAL_FETCHED = 'credential_fetched'
  CONNECTED = 'connected'
  SUBSCRIBED = 'subscribed'
  STREAMING = 'streaming'
  TERMINATED = 'terminated'


class TerminationReason(Enum):
  CLOSED = 'closed'
  ERROR = 'error'


def parse_ws_credential(body: object) -> WsCredential:
  """Read data.instanceServers[0].endpoint and data.token from a bullet-public response body."""
  data = body.get('data') if isinstance(body, dict) else None
  servers = data.get('instanceServers') if isinstance(data, dict) else None
  server = servers[0] if isinstance(servers, list) and servers else None
  endpoint = server.get('endpoint') if isinstance(server, dict) else None
  if not isinstance(endpoint, str) or not endpoint:
    raise CredentialError('WebSocket URL not found in bullet-public response.')
  token = data.get('token')
  if not isinstance(token, str) or not token:
    raise CredentialError('WebSocket token not found in bullet-public response.')
  ping_interval = server.get('pingInterval')
  return WsCredential(
    endpoint=endpoint, token=token,
    ping_interval_ms=ping_interval if isinstance(ping_interval, int) else None,
  )


def fetch_ws_credential(token_url: str, timeout: float = 10.0) -> WsCredential:
  try:
    resp = requests.post(token_url, timeout=timeout)
    resp.raise_for_status()
    body = resp.json()
  except (requests.RequestException, ValueError) as e:
    raise CredentialError(f'Token request to {token_url} failed: {e}') from e
  return parse_ws_credential(body)


def classify_message(raw: str | bytes) -> LadderUpdate | None:
  """Parsed payload for data updates; None for other kinds. Raises ValueError on malformed JSON."""
  msg = json.loads(raw)
  if isinstance(msg, dict) and msg.get('type') == DATA_MESSAGE_TYPE:
    return msg
  return None


class IngestionPipeline:
  """
  Owns the LadderSnapshot for the lifetime of one connection.
  run() walks INIT -> CREDENTIAL_FETCHED -> CONNECTED -> SUBSCRIBED -> STREAMING -> TERMINATED.
  Anything failing before STREAMING raises FeedError; streaming ends with a TerminationReason.
  """

  def __init__(self, snapshot: LadderSnapshot, config: FeedConfig | None = None, **kwargs: object) -> None:
    self._config = config if isinstance(config, FeedConfig) else FeedConfig(**kwargs)
    self._snapshot = snapshot
    self._ws: websocket.WebSocket | None = None
    self._credential: WsCredential | None = None
    self._last_ping = 0.0
    self._server_closed = False
    self.state = PipelineState.INIT
    self.termination: TerminationReason | None = None

  @property
  def snapshot(self) -> LadderSnapshot:
    return self._snapshot

  def run(self) -> TerminationReason:
    try:
      self.fetch_credential()
      self.connect()
      if not self.subscribe():
        return self._terminate(TerminationReason.CLOSED)
      return self.stream()
    except FeedError:
      self._terminate(TerminationReason.ERROR)
      raise
    finally:
      self.close()

  def fetch_credential(self) -> WsCredential:
    self._credential = fetch_ws_credential(self._config.token_url, self._config.http_timeout)
    self.state = PipelineState.CREDENTIAL_FETCHED
    logger.info('Obtained WebSocket token for %s', self._credential.endpoint)
    return self._credential

  def connect(self) -> None:
    if self._credential is None:
      raise RuntimeError('No credential. Call fetch_credential() first.')
    url = self._credential.url
    logger.info('Connecting to WebSocket: %s', self._credential.endpoint)
    try:
      self._ws = websocket.create_connection(url, timeout=self._config.recv_timeout)
    except (websocket.WebSocketException, OSError, ValueError) as e:
      raise TransportError(f'Failed to connect to {self._credential.endpoint}: {e}') from e
    self.state = PipelineState.CONNECTED
    logger.info('Connected to KuCoin WebSocket')

  def subscribe(self) -> bool:
    """Send the subscription and wait for one response. False when the server closed instead."""
    if self._ws is None:
      raise RuntimeError('Not connected. Call connect() first.')
    req = {
      'id': str(uuid.uuid4()),
      'type': 'subscribe',
      'topic': self._config.topic,
      'response': True,
    }
    try:
      self._ws.send(json.dumps(req))
      opcode, ack = self._ws.recv_data(control_frame=True)
      while opcode in (websocket.ABNF.OPCODE_PING, websocket.ABNF.OPCODE_PONG):
        opcode, ack = self._ws.recv_data(control_frame=True)
    except (websocket.WebSocketException, OSError) as e:
      raise TransportError(f'Subscription to {req["topic"]} failed: {e}') from e
    if opcode == websocket.ABNF.OPCODE_CLOSE:
      logger.warning('WebSocket closed by server during subscription.')
      self._server_closed = True
      return False
    logger.info('Subscription response: %s', ack)
    self._last_ping = time.monotonic()
    self.state = PipelineState.SUBSCRIBED
    return True

  def stream(self) -> TerminationReason:
    if self._ws is None:
      raise RuntimeError('Not connected. Call connect() first.')
    self.state = PipelineState.STREAMING
    while True:
      try:
        opcode, data = self._ws.recv_data(control_frame=True)
      except (websocket.WebSocketException, OSError) as e:
        logger.error('WebSocket error: %s', e)
        return self._terminate(TerminationReason.ERROR)
      if opcode == websocket.ABNF.OPCODE_CLOSE:
        logger.warning('WebSocket closed by server.')
        self._server_closed = True
        return self._terminate(TerminationReason.CLOSED)
      if opcode == websocket.ABNF.OPCODE_TEXT:
        self.handle_text(data)
      try:
        self._maybe_ping()
      except (websocket.WebSocketException, OSError) as e:
        logger.error('WebSocket error: %s', e)
        return self._terminate(TerminationReason.ERROR)

  def handle_text(self, raw: str | bytes) -> bool:
    """Apply one text frame. True when the ladder was replaced."""
    logger.debug('WebSocket message: %s', raw)
    try:
      update = classify_message(raw)
    except ValueError:
      logger.warning('Dropping malformed frame: %.200r', raw)
      return False
    if update is None:
      return False
    bids, asks = extract_levels(update, self._config.depth)
    self._snapshot.replace(bids, asks)
    self._render()
    return True

  def close(self) -> None:
    if self._ws is not None:
      try:
        if self._server_closed:
          self._ws.shutdown()
        else:
          self._ws.close()
      finally:
        self._ws = None

  def _render(self) -> None:
    if self._config.display:
      self._snapshot.display(clear=self._config.clear_screen)
    else:
      bid, ask = self._snapshot.best_bid(), self._snapshot.best_ask()
      logger.info(
        '%s bid %s ask %s', self._snapshot.symbol,
        bid.as_tuple() if bid else None, ask.as_tuple() if ask else None,
      )

  def _maybe_ping(self) -> None:
    interval_ms = self._credential.ping_interval_ms if self._credential else None
    if not interval_ms or self._ws is None:
      return
    now = time.monotonic()
    if (now - self._last_ping) * 1000 < interval_ms:
      return
    self._ws.send(json.dumps({'id': str(uuid.uuid4()), 'type': 'ping'}))
    self._last_ping = now

  def _terminate(self, reason: TerminationReason) -> TerminationReason:
    self.state = PipelineState.TERMINATED
    self.termination = reason
    logger.info('Pipeline terminated: %s', reason.value)
    return reason


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
  p = argparse.ArgumentParser(description='Stream the top-5 KuCoin Futures ladder for one contract.')
  p.add_argument('-s', '--symbol', help='Contract symbol, e.g. ETHUSDTM (default: $KUCOIN_FUTURES_SYMBOL or ETHUSDTM)')
  p.add_argument('--recv-timeout', type=float, metavar='SECONDS', help='Fail if no frame arrives within SECONDS')
  p.add_argument('--no-display', action='store_true', help='Log best bid/ask instead of printing the table')
  p.add_argument('--clear', action='store_true', help='Clear the terminal before each table')
  p.add_argument('-v', '--verbose', action='store_true', help='Log every raw frame')
  return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
  args = _parse_args(argv)
  logging.basicConfig(
    level=logging.DEBUG if args.verbose else logging.INFO,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
  )
  config = FeedConfig(
    recv_timeout=args.recv_timeout,
    display=not args.no_display,
    clear_screen=args.clear,
  )
  if args.symbol:
    config.symbol = args.symbol
  pipeline = IngestionPipeline(LadderSnapshot(config.symbol), config)
  try:
    reason = pipeline.run()
  except FeedError as e:
    logger.error('%s', e)
    return 1
  except KeyboardInterrupt:
    return 0
  return 1 if reason is TerminationReason.ERROR else 0


if __name__ == '__main__':
  sys.exit(main())
