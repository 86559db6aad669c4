from .launcher import ProcessWorkerHandle, SubprocessWorkerLauncher

__all__ = ["ProcessWorkerHandle", "SubprocessWorkerLauncher"]
