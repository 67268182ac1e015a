import pytest

from zeitdao.auth import ensure_member, ensure_self, is_member, is_self
from zeitdao.errors import OnlyMemberAllowed, OnlySelfAllowed


def test_is_member_is_plain_containment():
    assert is_member(["a", ""], "")
    assert is_member(["a", "b"], "b")
    assert not is_member(["a", "b"], "")
    assert not is_member([], "a")


def test_guards_raise_their_own_errors():
    ensure_member(["a"], "a")
    with pytest.raises(OnlyMemberAllowed):
        ensure_member(["a"], "z")
    assert is_self("dao", "dao")
    ensure_self("dao", "dao")
    with pytest.raises(OnlySelfAllowed):
        ensure_self("dao", "a")
