from fastapi.requests import HTTPConnection

from ...managers.analysis import AnalysisOrchestrator


def get_orchestrator(connection: HTTPConnection) -> AnalysisOrchestrator:
    """The application-wide orchestrator created by ``create_app``."""
    return connection.app.state.orchestrator
