from .errors import InputShapeError, ConfigurationError
