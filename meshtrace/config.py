from ._version import __version__

# Per-request timeout applied to the HTTP span transports, in seconds.
HTTP_TIMEOUT = 5.0


config: dict[str, str] = {
    'sdk_name': 'meshtrace',
    'sdk_version': __version__,
}
