"""
Follow graph.

Each user has one follow document holding ``following``, ``followers`` and
pending ``requests``. An edge is stored on both ends, so every change that
touches two documents runs through the transaction coordinator.
"""

from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import ErrorMessage
from app.core.errors import APIError
from app.db.transaction import TransactionCoordinator
from app.entities.social import Follow
from app.entities.user_profile import UserProfile
from app.repositories.follow import FollowRepository
from app.repositories.user_profile import UserProfileRepository
from app.schemas.base import MessageResponse, PaginatedResponse, PaginationInfo
from app.schemas.user_profile import FollowStatsResponse, FollowUserInfo
from app.services.async_error_handler import handle_service_errors
from app.utils.cursor import CursorUtils, validate_limit
from app.utils.logger import AppLogger

MAX_SEARCH_TERM_LENGTH = 100


class AsyncFollowService:

    def __init__(self, db: AsyncSession, transactions: TransactionCoordinator, logger: AppLogger):
        self.db = db
        self.transactions = transactions
        self.logger = logger.child("follow")
        self.profiles = UserProfileRepository()
        self.follows = FollowRepository(self.profiles)

    @handle_service_errors("follow_user", "Error following user")
    async def follow_user(self, follower_id, followee_id) -> MessageResponse:
        follower_id, followee_id = self._ids(follower_id, followee_id)
        if follower_id == followee_id:
            raise APIError.bad_request(ErrorMessage.CANNOT_FOLLOW_SELF)

        follower, followee = await self._load_pair(follower_id, followee_id)
        if follower.is_following(followee_id):
            raise APIError.conflict(ErrorMessage.ALREADY_FOLLOWING)

        followee_profile = await self.profiles.find_by_user_id(self.db, followee_id)
        if followee_profile is not None and followee_profile.is_private:
            raise APIError.bad_request(ErrorMessage.PRIVATE_ACCOUNT_FOLLOW_REQUEST)

        await self._link("follow_user", follower_id, followee_id, pull_request=False)
        self.logger.info("User followed", follower_id=follower_id, followee_id=followee_id)
        return MessageResponse(message="Successfully followed user")

    @handle_service_errors("request_to_follow", "Error sending follow request")
    async def request_to_follow(self, follower_id, followee_id) -> MessageResponse:
        follower_id, followee_id = self._ids(follower_id, followee_id)
        if follower_id == followee_id:
            raise APIError.bad_request(ErrorMessage.CANNOT_FOLLOW_SELF)

        follower, followee = await self._load_pair(follower_id, followee_id)
        if follower.is_following(followee_id):
            raise APIError.conflict(ErrorMessage.ALREADY_FOLLOWING)
        if followee.has_request_from(follower_id):
            raise APIError.conflict(ErrorMessage.FOLLOW_REQUEST_ALREADY_SENT)

        await self.follows.add_to_user_set(self.db, followee_id, "requests", follower_id)
        await self.db.commit()
        return MessageResponse(message="Follow request sent")

    @handle_service_errors("accept_follow_request", "Error accepting follow request")
    async def accept_follow_request(self, followee_id, follower_id) -> MessageResponse:
        follower_id, followee_id = self._ids(follower_id, followee_id)
        follower, followee = await self._load_pair(follower_id, followee_id)
        if not followee.has_request_from(follower_id):
            raise APIError.not_found(ErrorMessage.FOLLOW_REQUEST_NOT_FOUND)
        if follower.is_following(followee_id):
            raise APIError.conflict(ErrorMessage.ALREADY_FOLLOWING)

        await self._link("accept_follow_request", follower_id, followee_id, pull_request=True)
        return MessageResponse(message="Follow request accepted")

    @handle_service_errors("reject_follow_request", "Error rejecting follow request")
    async def reject_follow_request(self, followee_id, follower_id) -> MessageResponse:
        follower_id, followee_id = self._ids(follower_id, followee_id)
        followee = await self.follows.find_by_user_id(self.db, followee_id)
        if followee is None:
            raise APIError.not_found(ErrorMessage.FOLLOWEE_NOT_FOUND)
        if not followee.has_request_from(follower_id):
            raise APIError.not_found(ErrorMessage.FOLLOW_REQUEST_NOT_FOUND)

        await self.follows.pull_from_user(self.db, followee_id, "requests", follower_id)
        await self.db.commit()
        return MessageResponse(message="Follow request rejected")

    @handle_service_errors("unfollow_user", "Error unfollowing user")
    async def unfollow_user(self, follower_id, followee_id) -> MessageResponse:
        follower_id, followee_id = self._ids(follower_id, followee_id)
        follower, _ = await self._load_pair(follower_id, followee_id)
        if not follower.is_following(followee_id):
            raise APIError.bad_request(ErrorMessage.NOT_CURRENTLY_FOLLOWING)

        await self._unlink("unfollow_user", follower_id, followee_id)
        return MessageResponse(message="Successfully unfollowed user")

    @handle_service_errors("remove_follower", "Error removing follower")
    async def remove_follower(self, user_id, follower_id) -> MessageResponse:
        follower_id, user_id = self._ids(follower_id, user_id)
        _, user = await self._load_pair(follower_id, user_id)
        if not user.has_follower(follower_id):
            raise APIError.bad_request(ErrorMessage.FOLLOWER_NOT_CURRENTLY_FOLLOWING)

        await self._unlink("remove_follower", follower_id, user_id)
        return MessageResponse(message="Follower removed")

    @handle_service_errors("get_follow_stats", "Error fetching follow stats")
    async def get_follow_stats(self, user_id, viewer_id=None) -> FollowStatsResponse:
        user_id = self.follows.to_object_id(user_id, "user_id")
        follow = await self.follows.find_by_user_id(self.db, user_id)
        if follow is None:
            raise APIError.not_found(ErrorMessage.USER_NOT_FOUND)

        is_following = False
        if viewer_id is not None:
            is_following = follow.has_follower(self.follows.to_object_id(viewer_id, "viewer_id"))

        return FollowStatsResponse(
            user_id=str(user_id),
            followers_count=len(follow.followers),
            following_count=len(follow.following),
            is_following=is_following,
        )

    @handle_service_errors("get_followers", "Error fetching followers")
    async def get_followers(
        self, user_id, limit: Optional[int] = None, cursor: Optional[str] = None, viewer_id=None
    ) -> PaginatedResponse[FollowUserInfo]:
        return await self._page(user_id, limit, cursor, viewer_id, followers=True)

    @handle_service_errors("get_following", "Error fetching following")
    async def get_following(
        self, user_id, limit: Optional[int] = None, cursor: Optional[str] = None, viewer_id=None
    ) -> PaginatedResponse[FollowUserInfo]:
        return await self._page(user_id, limit, cursor, viewer_id, followers=False)

    @handle_service_errors("search_followers", "Error searching followers")
    async def search_followers(
        self, user_id, search_term: str, limit: Optional[int] = None, cursor: Optional[str] = None, viewer_id=None
    ) -> PaginatedResponse[FollowUserInfo]:
        term = self._search_term(search_term)
        return await self._page(user_id, limit, cursor, viewer_id, followers=True, search_term=term)

    @handle_service_errors("search_following", "Error searching following")
    async def search_following(
        self, user_id, search_term: str, limit: Optional[int] = None, cursor: Optional[str] = None, viewer_id=None
    ) -> PaginatedResponse[FollowUserInfo]:
        term = self._search_term(search_term)
        return await self._page(user_id, limit, cursor, viewer_id, followers=False, search_term=term)

    # Internals

    def _ids(self, follower_id, followee_id) -> Tuple[int, int]:
        return (
            self.follows.to_object_id(follower_id, "follower_id"),
            self.follows.to_object_id(followee_id, "followee_id"),
        )

    async def _load_pair(self, follower_id: int, followee_id: int) -> Tuple[Follow, Follow]:
        follower = await self.follows.find_by_user_id(self.db, follower_id)
        if follower is None:
            raise APIError.not_found(ErrorMessage.FOLLOWER_NOT_FOUND)
        followee = await self.follows.find_by_user_id(self.db, followee_id)
        if followee is None:
            raise APIError.not_found(ErrorMessage.FOLLOWEE_NOT_FOUND)
        return follower, followee

    async def _link(self, operation: str, follower_id: int, followee_id: int, pull_request: bool) -> None:
        async def add_follower(session: AsyncSession):
            updated = await self.follows.add_to_user_set(session, followee_id, "followers", follower_id)
            if pull_request:
                updated = await self.follows.pull_from_user(session, followee_id, "requests", follower_id)
            return updated

        def add_following(session: AsyncSession, _):
            return [lambda: self.follows.add_to_user_set(session, follower_id, "following", followee_id)]

        await self.transactions.execute(operation, add_follower, add_following, "Error updating follow graph")

    async def _unlink(self, operation: str, follower_id: int, followee_id: int) -> None:
        async def pull_follower(session: AsyncSession):
            return await self.follows.pull_from_user(session, followee_id, "followers", follower_id)

        def pull_following(session: AsyncSession, _):
            return [lambda: self.follows.pull_from_user(session, follower_id, "following", followee_id)]

        await self.transactions.execute(operation, pull_follower, pull_following, "Error updating follow graph")

    @staticmethod
    def _search_term(search_term: Optional[str]) -> str:
        term = (search_term or "").strip()
        if not term or len(term) > MAX_SEARCH_TERM_LENGTH:
            raise APIError.bad_request("Search term must be between 1 and 100 characters")
        return term

    async def _page(
        self,
        user_id,
        limit: Optional[int],
        cursor: Optional[str],
        viewer_id,
        followers: bool,
        search_term: Optional[str] = None,
    ) -> PaginatedResponse[FollowUserInfo]:
        user_id = self.follows.to_object_id(user_id, "user_id")
        limit = validate_limit(limit, settings.PAGINATION_DEFAULT_LIMIT, settings.PAGINATION_MAX_LIMIT)
        CursorUtils.parse_cursor(cursor)

        if followers:
            profiles, has_next = await self.follows.get_followers_paginated(
                self.db, user_id, limit, cursor, search_term
            )
        else:
            profiles, has_next = await self.follows.get_following_paginated(
                self.db, user_id, limit, cursor, search_term
            )

        viewer_following: List[int] = []
        if viewer_id is not None:
            viewer = await self.follows.find_by_user_id(self.db, self.follows.to_object_id(viewer_id, "viewer_id"))
            viewer_following = viewer.following if viewer else []

        return PaginatedResponse[FollowUserInfo](
            data=[self._user_info(p, viewer_following) for p in profiles],
            pagination=PaginationInfo(
                has_next_page=has_next,
                has_previous_page=bool(cursor),
                next_cursor=(
                    CursorUtils.create_cursor(profiles[-1].user_id, profiles[-1].created_at)
                    if has_next and profiles else None
                ),
                previous_cursor=cursor,
            ),
        )

    @staticmethod
    def _user_info(profile: UserProfile, viewer_following: List[int]) -> FollowUserInfo:
        return FollowUserInfo(
            user_id=str(profile.user_id),
            username=profile.username,
            name=profile.name,
            is_following=profile.user_id in viewer_following,
        )
