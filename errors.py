class FeedError(RuntimeError):
  """Fatal error raised before the ladder feed starts streaming."""


class CredentialError(FeedError):
  pass


class TransportError(FeedError):
  pass
