import io

import pytest

from fat16fs.disk import (
    CLUSTER_COUNT,
    CLUSTER_SIZE,
    FAT_BOOT,
    FAT_END,
    FAT_FREE,
    FIRST_DATA_CLUSTER,
    ROOT,
    FatError,
    FatImage,
    PathNotFound,
)
from fat16fs.shell import Shell, base_name, main


@pytest.fixture
def image_path(tmp_path):
    return tmp_path / "fat.part"


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def shell(image_path, out):
    s = Shell(image_path, out)
    s.init()
    return s


def test_init_layout(shell, image_path):
    raw = image_path.read_bytes()
    assert len(raw) == CLUSTER_COUNT * CLUSTER_SIZE
    assert raw[:CLUSTER_SIZE] == bytes([0xBB]) * CLUSTER_SIZE
    image = FatImage(image_path)
    image.load()
    assert image.fat[0] == FAT_BOOT
    assert image.fat[ROOT] == FAT_END
    assert image.fat[FIRST_DATA_CLUSTER] == FAT_FREE


def test_load_reports_success(shell, out):
    shell.mkdir("/kept")
    shell.load()
    assert "Sistema de arquivos carregado com sucesso." in out.getvalue()
    assert shell.ls("/") == ["kept"]


def test_load_missing_image(tmp_path, out):
    with pytest.raises(FatError):
        Shell(tmp_path / "missing.part", out).load()


def test_mkdir_then_ls(shell, out):
    shell.mkdir("/docs")
    assert shell.ls("/") == ["docs"]
    assert out.getvalue().endswith("docs\n")


def test_mkdir_uses_first_data_cluster(shell, image_path):
    shell.mkdir("/docs")
    entry, parent, index = FatImage(image_path).lookup("/docs")
    assert entry.first_block == FIRST_DATA_CLUSTER
    assert entry.is_directory
    assert parent == ROOT
    assert index == 0


def test_nested_directories(shell):
    shell.mkdir("/a")
    shell.mkdir("/a/b")
    assert shell.ls("/") == ["a"]
    assert shell.ls("/a") == ["b"]
    assert shell.ls("/a/b") == []


def test_mkdir_missing_parent(shell, out):
    shell.mkdir("/x/y")
    assert "Caminho não encontrado" in out.getvalue()
    assert shell.ls("/") == []


def test_mkdir_root_is_noop(shell):
    shell.mkdir("/")
    assert shell.ls("/") == []


def test_mkdir_name_too_long_claims_nothing(shell, image_path):
    with pytest.raises(FatError):
        shell.mkdir("/" + "n" * 40)
    image = FatImage(image_path)
    image.load()
    assert image.fat[FIRST_DATA_CLUSTER] == FAT_FREE
    assert shell.ls("/") == []


def test_ls_missing_path(shell):
    with pytest.raises(PathNotFound):
        shell.ls("/nowhere")


def test_append_and_read(shell, out):
    shell.mkdir("/f")
    shell.append("/f", "hello")
    assert shell.read("/f") == "hello"
    assert out.getvalue().endswith("hello\n")


def test_append_concatenates(shell):
    shell.mkdir("/f")
    shell.append("/f", "hello")
    shell.append("/f", " world")
    assert shell.read("/f") == "hello world"


def test_append_spans_clusters(shell, image_path):
    shell.mkdir("/f")
    content = "x" * (CLUSTER_SIZE + 100)
    shell.append("/f", content)
    assert shell.read("/f") == content
    image = FatImage(image_path)
    image.load()
    start = image.lookup("/f")[0].first_block
    chain = list(image.clusters_of(start))
    assert len(chain) == 2
    assert image.fat[chain[-1]] == FAT_END


@pytest.mark.parametrize(
    "path, expected",
    [("/a/b", "b"), ("/docs", "docs"), ("docs", "docs"), ("/a/b/", "b"), ("/", "")],
)
def test_base_name(path, expected):
    assert base_name(path) == expected


def test_execute_unknown(shell, out):
    assert shell.execute("frobnicate") is True
    assert "Comando não reconhecido." in out.getvalue()


def test_execute_exit(shell):
    assert shell.execute("exit") is False


def test_execute_reports_missing_path(shell, out):
    assert shell.execute("read /ghost") is True
    assert "Caminho não encontrado" in out.getvalue()


def test_execute_append_with_spaces(shell):
    shell.execute("mkdir /f")
    shell.execute("append /f some text here")
    assert shell.read("/f") == "some text here"


def test_run_stops_at_exit(shell, out):
    shell.run(["mkdir /d\n", "ls\n", "exit\n", "mkdir /e\n"])
    assert out.getvalue().count("FAT16$ ") == 3
    assert shell.ls("/") == ["d"]


def test_main_runs_commands(image_path, monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("init\nmkdir /d\nexit\n"))
    assert main(["--image", str(image_path)]) == 0
    assert "FAT16$ " in capsys.readouterr().out
    assert Shell(image_path, io.StringIO()).ls("/") == ["d"]