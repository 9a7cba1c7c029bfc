import importlib

import pytest

from bukber import models
from bukber.errors import RoomCapacityError
from bukber.models import DEFAULT_RESTAURANTS, RoomSession, Round
from bukber.registry import RoomRegistry

registry_module = importlib.import_module('bukber.registry')


def test_create_seeds_lobby_with_default_venues():
    reg = RoomRegistry(default_group_name='Bukber Championship')
    session = reg.create(host_sid='sid-a', host_name='Amir')
    assert session.round == Round.LOBBY
    assert session.group_name == 'Bukber Championship'
    assert session.restaurants == DEFAULT_RESTAURANTS
    assert session.restaurants is not DEFAULT_RESTAURANTS
    assert session.host.name == 'Amir'
    assert reg.get(session.room_id) is session
    assert 1000 <= int(session.room_id) <= 9999


def test_create_retries_on_collision(monkeypatch):
    codes = iter(['1111', '1111', '2222'])
    monkeypatch.setattr(registry_module, 'generate_room_code', lambda: next(codes))
    reg = RoomRegistry()
    first = reg.create()
    second = reg.create()
    assert (first.room_id, second.room_id) == ('1111', '2222')


def test_create_gives_up_when_codes_exhausted(monkeypatch):
    monkeypatch.setattr(registry_module, 'generate_room_code', lambda: '1111')
    reg = RoomRegistry(code_attempts=3)
    reg.create()
    with pytest.raises(RoomCapacityError):
        reg.create()
    assert len(reg) == 1


def test_remove_if_empty_only_drops_empty_rooms():
    reg = RoomRegistry()
    session = reg.create(host_sid='sid-a', host_name='Amir')
    assert not reg.remove_if_empty(session.room_id)
    session.remove_user('sid-a')
    assert reg.remove_if_empty(session.room_id)
    assert reg.get(session.room_id) is None


def test_find_by_sid():
    reg = RoomRegistry()
    a = reg.create(host_sid='sid-a', host_name='Amir')
    b = reg.create(host_sid='sid-b', host_name='Budi')
    assert reg.find_by_sid('sid-b') is b
    assert reg.find_by_sid('sid-a') is a
    assert reg.find_by_sid('sid-z') is None


def test_only_one_host_per_session():
    session = RoomSession('1234')
    session.add_user('sid-a', 'Amir', is_host=True)
    second = session.add_user('sid-b', 'Budi', is_host=True)
    assert second.is_host is False
    assert session.is_host('sid-a')


def test_snapshot_round_trip_keeps_empty_venue_list():
    session = RoomSession('1234', 'Bukber')
    session.add_user('sid-a', 'Amir', is_host=True)
    session.restaurants = []
    session.round = Round.ROUND2
    session.votes['round1'] = {'sid-a': ['2026-03-20']}
    session.top_dates = ['2026-03-20']
    snapshot = session.to_dict()
    assert RoomSession.from_dict(snapshot).to_dict() == snapshot


def test_room_codes_are_four_digits():
    for _ in range(50):
        code = models.generate_room_code()
        assert len(code) == 4 and code.isdigit() and code[0] != '0'
