"""URL pool exceptions."""


class URLPoolError(Exception):
    """A URL pool could not be loaded. No pool is produced."""


class URLParseError(URLPoolError):
    """A URL is malformed (no scheme, no host, bad port, line too long)."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f'Invalid URL "{url}": {reason}')


class InvalidScheme(URLParseError):
    """The URL scheme is neither http nor https."""

    def __init__(self, url: str, scheme: str):
        self.scheme = scheme
        super().__init__(url, f"unsupported scheme {scheme!r}")


class ResolutionError(URLPoolError):
    """The host name could not be resolved to any address."""

    def __init__(self, host: str, reason: str):
        self.host = host
        self.reason = reason
        super().__init__(f'Error looking up host "{host}": {reason}')
