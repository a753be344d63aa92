from samwad.routes.upload import router as upload_router
from samwad.routes.grievance import router as grievance_router
from samwad.routes.admin import router as admin_router

__all__ = ["upload_router", "grievance_router", "admin_router"]
