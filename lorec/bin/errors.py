"""
Exception classes raised while generating coverage plots and statistics
"""


class LorecError(Exception):
    pass

class ConfigurationError(LorecError):
    pass

class ProviderError(LorecError):
    pass

class OutputError(LorecError):
    pass
