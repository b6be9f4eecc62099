class ServerBoxError(Exception):
    """Base exception for serverbox."""


class ResolutionError(ServerBoxError):
    """Raised when a flavor, version or build cannot be resolved."""


class UnknownFlavorError(ResolutionError):
    """Raised when a flavor name is not in the flavor table."""


class VersionNotFoundError(ResolutionError):
    """Raised when a requested version is not published by the flavor."""


class BuildNotFoundError(ResolutionError):
    """Raised when a requested build is not in the build list of its version."""


class NoBuildsForVersionError(ResolutionError):
    """Raised when the provider lists no builds for a version."""


class UpstreamUnavailableError(ServerBoxError):
    """Raised when a provider API or download cannot be reached."""


class MalformedResponseError(ServerBoxError):
    """Raised when a provider payload does not have the expected shape."""


class NoJarFoundError(ServerBoxError):
    """Raised when a server directory has no usable server jar."""


class ProcessSpawnError(ServerBoxError):
    """Raised when the server process cannot be started."""


class ServerIOError(ServerBoxError):
    """Raised when reading or writing server files or pipes fails."""


class SidecarError(ServerBoxError):
    """Raised when a server sidecar file is invalid."""


class DuplicateServerNameError(ServerBoxError):
    """Raised when a server name is already registered for another location."""


class ServerNotFoundError(ServerBoxError):
    """Raised when no registered server has the requested name."""
