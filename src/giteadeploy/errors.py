"""Domain errors for giteadeploy."""


class DeployError(RuntimeError):
    """Raised when the deployment cannot continue safely."""
