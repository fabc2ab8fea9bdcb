import logging


class ExtraFieldsFormatter(logging.Formatter):
    """Appends the fields passed through `extra` to the log line."""

    _STANDARD_ATTRS = {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
        "extra_fields",
    }

    def format(self, record: logging.LogRecord) -> str:
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self._STANDARD_ATTRS and not key.startswith("_")
        }
        record.extra_fields = ""
        if extras:
            formatted = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
            record.extra_fields = f" | {formatted}"
        return super().format(record)


class SecretRedactionFilter(logging.Filter):
    """Masks configured secrets in messages, args and extra fields."""

    MASK = "***"

    def __init__(self, secrets: list[str] | None = None) -> None:
        super().__init__()
        self._secrets = [secret for secret in (secrets or []) if secret]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        if isinstance(record.msg, str):
            record.msg = self._redact(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {key: self._redact_value(value) for key, value in record.args.items()}
            else:
                record.args = tuple(self._redact_value(value) for value in record.args)
        for key, value in list(record.__dict__.items()):
            if key in ExtraFieldsFormatter._STANDARD_ATTRS or key.startswith("_"):
                continue
            record.__dict__[key] = self._redact_value(value)
        return True

    def _redact_value(self, value: object) -> object:
        if isinstance(value, str):
            return self._redact(value)
        return value

    def _redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, self.MASK)
        return text


def setup_logging(level: str, secrets: list[str] | None = None) -> None:
    formatter = ExtraFieldsFormatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s%(extra_fields)s"
    )
    logging.basicConfig(level=level.upper(), force=True)
    root_logger = logging.getLogger()
    redaction = SecretRedactionFilter(secrets)
    for handler in root_logger.handlers:
        handler.setFormatter(formatter)
        handler.addFilter(redaction)
