class LoafError(Exception):
    "Base class for everything the core raises. The kind tag is stable across versions."
    kind = "LoafError"

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class LoafSyntaxError(LoafError):
    kind = "SyntaxError"

    def __init__(self, message, line=None, column=None):
        if line is not None:
            message = "line {} col {}: {}".format(line, column, message)
        super().__init__(message)
        self.line = line
        self.column = column


class LoafSemanticError(LoafError):
    """
    A well-formed program that cannot be run. Carries every problem found
    as a list of (message, line, column); line and column may be None.
    """
    kind = "SemanticError"

    def __init__(self, errors):
        self.errors = list(errors)
        lines = []
        for (msg, line, col) in self.errors:
            if line is None:
                lines.append(msg)
            else:
                lines.append("line {} col {}: {}".format(line, col, msg))
        super().__init__("\n".join(lines))


class LoafConfigurationError(LoafError):
    kind = "ConfigurationError"


class LoafStateError(LoafError):
    kind = "StateError"
