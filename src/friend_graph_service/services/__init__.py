from .friendship_engine import FriendshipEngine

__all__ = ["FriendshipEngine"]
