import pytest

from mediastream.main import main


def test_list_devices(capsys, tmp_path) -> None:
    assert main(["--config", str(tmp_path / "none.yaml"), "--test-devices", "--list-devices"]) == 0
    out = capsys.readouterr().out
    assert "video\tvideotest" in out
    assert "audio\taudiotest" in out


def test_capture_with_test_devices(tmp_path) -> None:
    output = tmp_path / "samples"
    code = main([
        "--config", str(tmp_path / "none.yaml"),
        "--test-devices",
        "--output", str(output),
        "--duration", "0.6",
        "--width", "64",
        "--height", "48",
    ])
    assert code == 0
    assert list((output / "videotest_jpeg").glob("*.jpg"))
    assert list((output / "audiotest_l16").glob("*.pcm"))


def test_capture_from_config_file(tmp_path) -> None:
    output = tmp_path / "out"
    config = tmp_path / "config.yaml"
    config.write_text(
        f"output_dir: {output}\n"
        "test_devices: true\n"
        "duration: 0.3\n"
        "audio:\n"
        "  codec_name: L16\n",
        encoding="utf-8",
    )
    assert main(["--config", str(config)]) == 0
    assert list((output / "audiotest_l16").glob("*.pcm"))
    assert not (output / "videotest_jpeg").exists()


def test_unknown_codec_fails(tmp_path) -> None:
    code = main([
        "--config", str(tmp_path / "none.yaml"),
        "--test-devices",
        "--output", str(tmp_path),
        "--duration", "0.1",
        "--video-codec", "H265",
    ])
    assert code == 1


@pytest.mark.parametrize("section", ["  width: \"640\"\n", "  frame_rate: fast\n"])
def test_non_numeric_config_value_exits_with_usage_error(tmp_path, section) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        f"output_dir: {tmp_path / 'out'}\n"
        "test_devices: true\n"
        "duration: 0.1\n"
        "video:\n" + section,
        encoding="utf-8",
    )
    assert main(["--config", str(config)]) == 2
    assert not (tmp_path / "out").exists() or not any((tmp_path / "out").iterdir())


def test_config_section_must_be_a_mapping(tmp_path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(f"output_dir: {tmp_path / 'out'}\ntest_devices: true\nvideo: 640\n", encoding="utf-8")
    assert main(["--config", str(config)]) == 2
