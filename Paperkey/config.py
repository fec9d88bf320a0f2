""" Options shared by the library entry points and the command line """

import os

import msgspec

from .output import DEFAULT_OUTPUT_WIDTH, MIN_OUTPUT_WIDTH, DataType

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

ENV_PREFIX = 'PAPERKEY_'

class Options(msgspec.Struct, frozen=True):
    # Extraction
    output_type: str = DataType.BASE16
    output_width: int = DEFAULT_OUTPUT_WIDTH
    comment: str | None = None

    # Restoration
    input_type: str = DataType.AUTO
    ignore_checksum_errors: bool = False

    log_level: str = 'WARNING'

    def __post_init__(self):
        if self.output_type not in DataType.output_types:
            raise ValueError("output_type must be one of %s, got %r" % (', '.join(DataType.output_types), self.output_type))
        if self.input_type not in DataType.input_types:
            raise ValueError("input_type must be one of %s, got %r" % (', '.join(DataType.input_types), self.input_type))
        if self.output_width < MIN_OUTPUT_WIDTH:
            raise ValueError("output_width must be at least %d, got %d" % (MIN_OUTPUT_WIDTH, self.output_width))
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError("log_level must be one of %s, got %r" % (', '.join(LOG_LEVELS), self.log_level))

    @property
    def normalized_log_level(self):
        return self.log_level.upper()

    @classmethod
    def from_env(cls, environ = None, **overrides):
        """ Build options from PAPERKEY_* variables, e.g. PAPERKEY_OUTPUT_WIDTH.
            Keyword arguments that are not None take precedence.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for field in cls.__struct_fields__:
            raw = environ.get(ENV_PREFIX + field.upper())
            if raw is not None:
                values[field] = raw
        values.update((k, v) for k, v in overrides.items() if v is not None)
        # Environment values are strings, lax mode turns "78" into 78 and "true" into True
        try:
            return msgspec.convert(values, cls, strict=False)
        except msgspec.ValidationError as e:
            raise ValueError("invalid options: %s" % e)
