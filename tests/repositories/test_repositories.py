import pytest

from smartconfig.models import Setting, SettingDimension
from smartconfig.repositories import SettingRepository


def add_setting(session, name, value, **dimensions):
    setting = Setting(
        name=name,
        value=value,
        dimensions=[SettingDimension(name=k, value=v) for k, v in dimensions.items()],
    )
    session.add(setting)
    session.commit()
    return setting


@pytest.mark.integration
def test_setting_repository_create(db_session):
    """Test Setting repository create."""
    repo = SettingRepository(db_session)
    setting = repo.create(name="Timeout", value="30")
    db_session.commit()

    assert setting.id is not None
    assert repo.get_by_id(setting.id).value == "30"


@pytest.mark.integration
def test_get_by_name_is_case_insensitive(db_session):
    add_setting(db_session, "Timeout", "a", Environment="*")
    add_setting(db_session, "Timeout", "b", Environment="PROD")
    add_setting(db_session, "Retries", "c", Environment="*")

    rows = SettingRepository(db_session).get_by_name("TIMEOUT")

    assert [r.value for r in rows] == ["a", "b"]


@pytest.mark.integration
def test_find_exact(db_session):
    add_setting(db_session, "Timeout", "a", Environment="*", Version="*")
    add_setting(db_session, "Timeout", "b", Environment="PROD", Version="*")

    repo = SettingRepository(db_session)

    assert repo.find_exact("Timeout", {"Environment": "PROD", "Version": "*"}).value == "b"
    assert repo.find_exact("Timeout", {"Environment": "PROD"}) is None
    assert repo.find_exact("Timeout", {"Environment": "prod", "Version": "*"}) is None
    assert repo.find_exact("Timeout", {"environment": "PROD", "VERSION": "*"}).value == "b"


@pytest.mark.integration
def test_find_exact_rejects_duplicates(db_session):
    add_setting(db_session, "Timeout", "a", Environment="PROD")
    add_setting(db_session, "Timeout", "b", Environment="PROD")

    with pytest.raises(ValueError):
        SettingRepository(db_session).find_exact("Timeout", {"Environment": "PROD"})


@pytest.mark.integration
def test_upsert_by_creates_then_updates(db_session):
    repo = SettingRepository(db_session)

    created = repo.upsert_by(name="Timeout", dimensions={"Environment": "*"}, value="30")
    db_session.commit()
    updated = repo.upsert_by(name="timeout", dimensions={"Environment": "*"}, value="45")
    db_session.commit()

    assert created.id == updated.id
    assert len(repo.get_by_name("Timeout")) == 1
    assert repo.get_by_id(created.id).value == "45"


@pytest.mark.integration
def test_upsert_by_keeps_other_rows(db_session):
    add_setting(db_session, "Timeout", "a", Environment="*")
    repo = SettingRepository(db_session)

    repo.upsert_by(name="Timeout", dimensions={"Environment": "PROD"}, value="b")
    db_session.commit()

    assert sorted(r.value for r in repo.get_by_name("Timeout")) == ["a", "b"]


@pytest.mark.integration
def test_base_repository_delete(db_session):
    setting = add_setting(db_session, "Timeout", "a")
    repo = SettingRepository(db_session)

    assert repo.delete(setting.id) is True
    assert repo.delete(setting.id) is False
    assert repo.get_by_id(setting.id) is None


@pytest.mark.integration
def test_get_items(db_session):
    add_setting(db_session, "Hosts[0]", "a", Environment="*")
    add_setting(db_session, "hosts[1]", "b", Environment="PROD")
    add_setting(db_session, "Hosts", "plain", Environment="*")
    add_setting(db_session, "Hosts[0]x", "malformed", Environment="*")
    add_setting(db_session, "Hosts_1[0]", "other", Environment="*")

    rows = SettingRepository(db_session).get_items("HOSTS")

    assert [r.value for r in rows] == ["a", "b"]


@pytest.mark.integration
def test_delete_items_matches_exact_dimensions(db_session):
    add_setting(db_session, "Hosts[0]", "a", Environment="*")
    add_setting(db_session, "Hosts[1]", "b", Environment="*")
    add_setting(db_session, "Hosts[0]", "p", Environment="PROD")
    repo = SettingRepository(db_session)

    assert repo.delete_items("Hosts", {"environment": "*"}) == 2
    db_session.commit()

    assert [r.value for r in repo.get_items("Hosts")] == ["p"]
