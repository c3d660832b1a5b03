from dbfixture.services.environment import EnvironmentGate, parse_flag, read_flags


def test_parse_flag_accepts_common_truthy_values():
    assert parse_flag("1")
    assert parse_flag(" TRUE ")
    assert parse_flag("yes")
    assert not parse_flag("false")
    assert not parse_flag("")
    assert not parse_flag(None)


def test_read_flags_from_environ():
    flags = read_flags({"DBFIXTURE_FORCE_REFRESH": "true"})

    assert flags.force_refresh is True
    assert flags.delete_image is False


def test_environment_gate_checks_profile():
    assert EnvironmentGate(environ={"DBFIXTURE_ENV": "test"}).is_test()
    assert not EnvironmentGate(environ={"DBFIXTURE_ENV": "production"}).is_test()
    assert not EnvironmentGate(environ={}).is_test()
