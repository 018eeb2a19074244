from src.crew.services.project_query_service import ProjectQueryService

__all__ = ["ProjectQueryService"]
