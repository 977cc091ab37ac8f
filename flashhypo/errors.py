class InputShapeError(ValueError):
    """
    Raised when a trajectory and its dE/dx profile have incompatible shapes.
    """
    pass


class ConfigurationError(ValueError):
    """
    Raised when a detector/medium constant has no physical meaning
    (e.g. a prompt fraction outside (0,1]).
    """
    pass
