import io

import pytest
from PIL import Image

import ascii_shell
from ascii_shell import Shell, parse_char_spec
from char_matcher import BrightnessCache


def ink(ch):
    return (ord(ch) * 7) % 257


@pytest.fixture
def image():
    img = Image.new("RGB", (8, 8), (255, 255, 255))
    img.paste((0, 0, 0), (0, 0, 4, 8))
    return img


@pytest.fixture
def shell(image, fake_render):
    render = fake_render({}, default=ink)
    return Shell(image, res=4, charset="0123456789", brightness_cache=BrightnessCache(render))


def last_line(capsys):
    return capsys.readouterr().out.strip().splitlines()[-1]


@pytest.mark.parametrize("spec, expected", [
    ("x", ["x"]),
    (" ", [" "]),
    ("space", [" "]),
    ("a-c", ["a", "b", "c"]),
    ("c-a", ["a", "b", "c"]),
    ("all", "all"),
    ("ab", None),
    ("a-", None),
    ("", None),
])
def test_parse_char_spec(spec, expected):
    assert parse_char_spec(spec) == expected


def test_chars_lists_sorted(shell, capsys):
    shell.execute("chars")
    assert last_line(capsys) == "0 1 2 3 4 5 6 7 8 9"


def test_add_and_remove_variants(shell):
    shell.execute("add a-c")
    shell.execute("add space")
    shell.execute("add z")
    assert shell.matcher.chars[:1] == (" ",)
    assert {"a", "b", "c", "z"} <= set(shell.matcher.chars)
    shell.execute("remove c-a")
    shell.execute("remove space")
    shell.execute("remove 0")
    assert shell.matcher.chars == tuple("123456789z")


def test_add_all_and_remove_all(shell, capsys):
    shell.execute("add all")
    assert len(shell.matcher) == 95
    shell.execute("remove all")
    assert shell.matcher.is_empty()
    shell.execute("asciiArt")
    assert last_line(capsys) == ascii_shell.NO_CHARS


def test_bad_formats_do_not_mutate(shell, capsys):
    before = shell.matcher.chars
    shell.execute("add xyz")
    assert last_line(capsys) == ascii_shell.BAD_ADD
    shell.execute("remove 1-23")
    assert last_line(capsys) == ascii_shell.BAD_REMOVE
    shell.execute("frobnicate")
    assert last_line(capsys) == ascii_shell.BAD_COMMAND
    shell.execute("output printer")
    assert last_line(capsys) == ascii_shell.BAD_OUTPUT
    assert shell.matcher.chars == before


def test_exit_stops(shell):
    assert shell.execute("exit") is False
    assert shell.execute("chars") is True


def test_resolution_up_down_and_bounds(shell, capsys):
    shell.execute("res up")
    assert last_line(capsys) == "Resolution set to 8."
    shell.execute("res up")
    assert last_line(capsys) == ascii_shell.EXCEEDING_BOUNDARIES
    assert shell.res == 8
    for expected in (4, 2, 1):
        shell.execute("res down")
        assert last_line(capsys) == f"Resolution set to {expected}."
    shell.execute("res down")
    assert last_line(capsys) == ascii_shell.EXCEEDING_BOUNDARIES
    assert shell.res == 1


def test_initial_resolution_is_clamped(image, fake_render):
    s = Shell(image, res=128, brightness_cache=BrightnessCache(fake_render({}, default=ink)))
    assert s.res == 8


def test_bad_image_keeps_previous(shell, image, capsys, tmp_path):
    shell.execute(f"image {tmp_path / 'missing.png'}")
    assert ascii_shell.IMAGE_FAILED in capsys.readouterr().out
    assert shell.image is image


def test_new_image_clamps_resolution(shell, tmp_path):
    path = tmp_path / "tiny.png"
    Image.new("RGB", (2, 2), (0, 0, 0)).save(path)
    shell.execute(f"image {path}")
    assert shell.image.size == (2, 2)
    assert shell.res == 2


def test_ascii_art_to_console(image, fake_render, capsys):
    render = fake_render({"#": 0, ".": 256})
    s = Shell(image, res=2, charset="#.", brightness_cache=BrightnessCache(render))
    s.execute("asciiArt")
    assert capsys.readouterr().out == "#.\n#.\n"


def test_ascii_art_to_file(image, fake_render, tmp_path, capsys):
    render = fake_render({"#": 0, ".": 256})
    s = Shell(image, res=2, charset="#.", brightness_cache=BrightnessCache(render))
    out = tmp_path / "art.txt"
    s.execute(f"output file {out}")
    s.execute("asciiArt")
    assert out.read_text(encoding="utf-8") == "#.\n#."
    assert "[asciiArt] wrote" in capsys.readouterr().out
    s.execute("output console")
    s.execute("asciiArt")
    assert capsys.readouterr().out == "#.\n#.\n"


def test_run_reads_until_exit(shell, capsys):
    shell.run(io.StringIO("add x\nchars\nexit\nadd y\n"))
    assert "x" in shell.matcher
    assert "y" not in shell.matcher
    assert last_line(capsys) == "0 1 2 3 4 5 6 7 8 9 x"


def test_run_stops_at_end_of_input(shell):
    shell.run(io.StringIO("remove 0-4\n"))
    assert shell.matcher.chars == tuple("56789")


def test_matchers_share_caches_across_remove_all(shell):
    original = shell.matcher.index
    shell.execute("add a")
    shell.execute("remove all")
    assert shell.matcher.is_empty()
    shell.execute("add 0-9")
    assert shell.matcher.chars == tuple("0123456789")
    assert shell.matcher.index is original
