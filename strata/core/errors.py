"""
Error types for Strata operations.

Every error reaches the immediate caller. Only ReferenceConflictError is
retried, and only by the commit graph.
"""


class StrataError(Exception):
    """Base exception for all Strata errors."""
    pass


class RepositoryError(StrataError):
    """Raised when a repository is missing or already initialized."""
    pass


class NotFoundError(StrataError):
    """Raised when a digest, reference or staged path is absent."""
    pass


class ObjectNotFoundError(NotFoundError):
    """Raised when a requested object does not exist."""
    
    def __init__(self, digest: str):
        self.digest = digest
        super().__init__(f"Object not found: {digest}")


class RefNotFoundError(NotFoundError):
    """Raised when a reference does not exist."""
    
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Reference not found: {name}")


class PathNotStagedError(NotFoundError):
    """Raised when removing a path that has no staging entry."""
    
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Path not staged: {path}")


class IntegrityError(StrataError):
    """Raised when stored bytes fail the digest recheck."""
    
    def __init__(self, digest: str, reason: str):
        self.digest = digest
        self.reason = reason
        super().__init__(f"Object corrupted: {digest}: {reason}")


class InvalidDigestError(StrataError, ValueError):
    """Raised when a string is not a well-formed digest."""
    
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid digest: {value!r}")


class ObjectTypeError(StrataError):
    """Raised when an object has a different type than expected."""
    
    def __init__(self, digest: str, expected: str, actual: str):
        self.digest = digest
        self.expected = expected
        self.actual = actual
        super().__init__(f"Object {digest} is a {actual}, expected {expected}")


class InvalidPathError(StrataError, ValueError):
    """Raised when a path or tree entry name is malformed."""
    pass


class PathConflictError(StrataError):
    """Raised when a file and a directory clash at one path."""
    
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Path conflict at {path}: {reason}")


class NothingToCommitError(StrataError):
    """Raised when the staged tree equals the parent commit's tree."""
    pass


class InvalidRefError(StrataError):
    """Raised for malformed reference names and forbidden indirection."""
    pass


class ReferenceConflictError(StrataError):
    """Raised when a reference moved between read and compare-and-swap."""
    
    def __init__(self, name: str, expected, actual):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Reference {name} changed concurrently "
            f"(expected {expected or 'nothing'}, found {actual or 'nothing'})"
        )


class UncommittedChangesError(StrataError):
    """Raised when a checkout would overwrite local changes."""
    
    def __init__(self, paths):
        self.paths = sorted(paths)
        listing = ', '.join(self.paths[:5])
        if len(self.paths) > 5:
            listing += f", ... ({len(self.paths)} paths)"
        super().__init__(f"Local changes would be overwritten by checkout: {listing}")


class IdentityError(StrataError):
    """Raised when no author identity is given or configured."""
    pass
