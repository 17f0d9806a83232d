from app.db.base_class import Base

# Import ALL models so SQLAlchemy registers them
from app.models.user import User  # noqa: F401
from app.models.title import Title  # noqa: F401
from app.models.title_list import TitleList  # noqa: F401
from app.models.list_owner import ListOwner  # noqa: F401
from app.models.list_item import ListItem  # noqa: F401
from app.models.user_title import UserTitle  # noqa: F401
