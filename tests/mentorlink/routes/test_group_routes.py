import pytest
from pydantic import ValidationError

from mentorlink.core.errors import ForbiddenError
from mentorlink.models.group import MembershipStatus
from mentorlink.routes.group_routes import (
    CreateGroupRequest,
    create_group,
    delete_group,
    get_group,
    join_group,
    leave_group,
    list_my_groups,
    respond_to_join_request,
)


def test_create_group_request_trims_fields() -> None:
    request = CreateGroupRequest(name='  SQL Night ', description=' Joins and indexes ')

    assert request.name == 'SQL Night'
    assert request.description == 'Joins and indexes'


@pytest.mark.parametrize(
    'payload',
    [{'name': '   '}, {'name': 'x' * 101}, {'name': 'ok', 'description': 'x' * 1001}],
)
def test_create_group_request_rejects_invalid_fields(payload) -> None:
    with pytest.raises(ValidationError):
        CreateGroupRequest(**payload)


def test_group_membership_flow(db, make_student, make_mentor) -> None:
    creator = make_student()
    joiner = make_mentor()
    group = create_group(CreateGroupRequest(name='SQL Night'), current_user=creator, db=db)

    membership = join_group(group.id, current_user=joiner, db=db)
    assert membership.status == MembershipStatus.PENDING

    accepted = respond_to_join_request(group.id, joiner.id, accept=True, current_user=creator, db=db)
    assert accepted.status == MembershipStatus.ACCEPTED
    assert [item.id for item in list_my_groups(current_user=joiner, db=db)] == [group.id]

    response = leave_group(group.id, current_user=joiner, db=db)
    assert response.status_code == 204
    assert [member.user_id for member in get_group(group.id, current_user=creator, db=db).members] == [creator.id]


def test_only_creator_can_respond_to_join_requests(db, make_student) -> None:
    creator = make_student()
    joiner = make_student()
    outsider = make_student()
    group = create_group(CreateGroupRequest(name='SQL Night'), current_user=creator, db=db)
    join_group(group.id, current_user=joiner, db=db)

    with pytest.raises(ForbiddenError) as exception_info:
        respond_to_join_request(group.id, joiner.id, accept=True, current_user=outsider, db=db)

    assert exception_info.value.detail == 'Only the group creator can respond to join requests'


def test_delete_group_returns_no_content(db, make_student) -> None:
    creator = make_student()
    group = create_group(CreateGroupRequest(name='SQL Night'), current_user=creator, db=db)

    response = delete_group(group.id, current_user=creator, db=db)

    assert response.status_code == 204
