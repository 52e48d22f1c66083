"""Study groups: creation, join requests, membership responses, leaving and disbanding."""

import logging

from sqlalchemy.orm import Session

from mentorlink.core.errors import BadRequestError, ForbiddenError, NotFoundError
from mentorlink.database import atomic
from mentorlink.models.group import Group, GroupMember, MembershipStatus
from mentorlink.models.user import User, UserRole, utcnow

logger = logging.getLogger(__name__)


def create_group(db: Session, creator_id: int, name: str, description: str) -> Group:
    """Create a group whose creator is an accepted member from the start."""
    creator = db.query(User).filter(User.id == creator_id, User.role == UserRole.STUDENT).first()
    if creator is None:
        raise ForbiddenError('Only students can create groups')

    with atomic(db):
        group = Group(
            name=name.strip(),
            description=description.strip(),
            creator_id=creator.id,
            created_at=utcnow(),
        )
        db.add(group)
        db.flush()
        db.add(GroupMember(group_id=group.id, user_id=creator.id, status=MembershipStatus.ACCEPTED))

    db.refresh(group)
    logger.info('Student %s created group %s', creator_id, group.id)
    return group


def get_group(db: Session, group_id: int) -> Group:
    group = db.get(Group, group_id)
    if group is None:
        raise NotFoundError(f'Group with ID {group_id} not found')
    return group


def list_groups(db: Session) -> list[Group]:
    return db.query(Group).order_by(Group.created_at.desc(), Group.id.desc()).all()


def get_user_groups(db: Session, user_id: int) -> list[Group]:
    return (
        db.query(Group)
        .join(GroupMember, GroupMember.group_id == Group.id)
        .filter(GroupMember.user_id == user_id, GroupMember.status == MembershipStatus.ACCEPTED)
        .order_by(Group.created_at.desc(), Group.id.desc())
        .all()
    )


def _get_membership(db: Session, group_id: int, user_id: int) -> GroupMember | None:
    return db.get(GroupMember, (group_id, user_id))


def join_group(db: Session, user_id: int, group_id: int) -> GroupMember:
    if db.get(User, user_id) is None:
        raise NotFoundError('User not found')
    get_group(db, group_id)

    # Any existing row blocks a new request, including a rejected one.
    if _get_membership(db, group_id, user_id) is not None:
        raise BadRequestError('You have already joined or requested to join this group')

    with atomic(db, conflict_message='You have already joined or requested to join this group'):
        membership = GroupMember(group_id=group_id, user_id=user_id, status=MembershipStatus.PENDING)
        db.add(membership)

    db.refresh(membership)
    logger.info('User %s requested to join group %s', user_id, group_id)
    return membership


def respond_to_join_request(db: Session, group_id: int, user_id: int, accept: bool) -> GroupMember:
    membership = _get_membership(db, group_id, user_id)
    if membership is None:
        raise NotFoundError('Join request not found')

    if membership.status != MembershipStatus.PENDING:
        raise BadRequestError('This request is not pending')

    with atomic(db):
        membership.status = MembershipStatus.ACCEPTED if accept else MembershipStatus.REJECTED

    db.refresh(membership)
    logger.info('Join request of user %s to group %s marked %s', user_id, group_id, membership.status.value)
    return membership


def ensure_group_creator(db: Session, group_id: int, actor_id: int, message: str) -> Group:
    group = get_group(db, group_id)
    if group.creator_id != actor_id:
        raise ForbiddenError(message)
    return group


def leave_group(db: Session, user_id: int, group_id: int) -> None:
    membership = _get_membership(db, group_id, user_id)
    if membership is None or membership.status != MembershipStatus.ACCEPTED:
        raise NotFoundError('Group membership not found')

    if membership.group.creator_id == user_id:
        raise BadRequestError('Group creators cannot leave the group. Please delete the group instead.')

    with atomic(db):
        db.delete(membership)

    logger.info('User %s left group %s', user_id, group_id)


def delete_group(db: Session, creator_id: int, group_id: int) -> None:
    """Remove every membership of the group, then the group itself, in one transaction."""
    group = ensure_group_creator(db, group_id, creator_id, 'Only the group creator can delete the group')

    with atomic(db):
        db.query(GroupMember).filter(GroupMember.group_id == group.id).delete(synchronize_session=False)
        # The loaded collection still holds the deleted rows.
        db.expire(group, ['members'])
        db.delete(group)

    logger.info('User %s deleted group %s', creator_id, group_id)
