from app.models.user import User
from app.models.title import Title
from app.models.title_list import TitleList
from app.models.list_owner import ListOwner
from app.models.list_item import ListItem
from app.models.user_title import UserTitle

__all__ = ["User", "Title", "TitleList", "ListOwner", "ListItem", "UserTitle"]
