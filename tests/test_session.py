from undercover.session import default_session_path, load_session_id


def test_session_id_is_minted_once(tmp_path):
    path = tmp_path / "nested" / "session"
    first = load_session_id(path)
    assert path.read_text() == first
    assert load_session_id(path) == first


def test_existing_id_is_kept(tmp_path):
    path = tmp_path / "session"
    path.write_text("  kept-id\n")
    assert load_session_id(path) == "kept-id"


def test_empty_file_gets_fresh_id(tmp_path):
    path = tmp_path / "session"
    path.write_text("")
    session_id = load_session_id(path)
    assert session_id
    assert path.read_text() == session_id


def test_env_override(tmp_path, monkeypatch):
    target = tmp_path / "custom"
    monkeypatch.setenv("UNDERCOVER_SESSION_FILE", str(target))
    assert default_session_path() == target
    session_id = load_session_id()
    assert target.read_text() == session_id
