class PathError(ValueError):
    pass


class NoWorkspaceError(RuntimeError):
    pass
