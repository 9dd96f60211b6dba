"""
Tests for Path file system operations.

Requires Python 3.11+.
"""

import os
import pickle
import threading

import pytest

from paths import (
    AttributesError,
    ChangeDirectoryError,
    CopyFileError,
    CreateDirectoryError,
    CreateFileError,
    CreateSymlinkError,
    DeleteFileError,
    FileSystemError,
    FileType,
    MoveFileError,
    ReadDirectoryError,
    Reason,
    ResolveError,
    Path,
)


class TestCreation:
    """Test cases for creating and deleting items."""

    def test_create_directory_with_intermediates(self, workdir: Path):
        """Test nested creation is idempotent with intermediates allowed."""
        nested = workdir + "a/b/c"

        nested.create_directory()
        nested.create_directory()

        assert nested.is_directory
        assert (workdir + "a").is_directory

    def test_create_directory_without_intermediates(self, workdir: Path):
        """Test strict creation fails for existing directories and missing parents."""
        target = workdir + "single"
        target.create_directory(with_intermediate_directories=False)

        with pytest.raises(CreateDirectoryError) as exc_info:
            target.create_directory(with_intermediate_directories=False)
        assert exc_info.value.reason is Reason.ALREADY_EXISTS
        assert isinstance(exc_info.value.__cause__, FileExistsError)

        with pytest.raises(CreateDirectoryError) as exc_info:
            (workdir + "missing/child").create_directory(with_intermediate_directories=False)
        assert exc_info.value.reason is Reason.NOT_FOUND

    def test_create_file(self, workdir: Path):
        """Test exclusive file creation."""
        target = workdir + "file.txt"

        target.create_file()
        assert target.is_file

        with pytest.raises(CreateFileError) as exc_info:
            target.create_file()
        assert exc_info.value.reason is Reason.ALREADY_EXISTS

        target.create_file(exist_ok=True)

    def test_touch_bumps_modification_date(self, workdir: Path):
        """Test touch creates a file and updates its timestamp."""
        target = workdir + "touched"
        assert target.modification_date is None

        target.touch()
        os.utime(target, (0, 0))
        old = target.modification_date
        target.touch()

        assert target.modification_date > old

    def test_delete_file_and_tree(self, workdir: Path):
        """Test deleting a file and a whole directory tree."""
        tree = workdir + "tree"
        (tree + "sub").create_directory()
        (tree + "sub/leaf.txt").create_file()
        single = workdir + "single.txt"
        single.create_file()

        single.delete()
        tree.delete()

        assert not single.exists
        assert not tree.exists

    def test_delete_missing(self, workdir: Path):
        """Test deleting something that is not there."""
        with pytest.raises(DeleteFileError) as exc_info:
            (workdir + "ghost").delete()

        assert exc_info.value.reason is Reason.NOT_FOUND


class TestMoveCopyLink:
    """Test cases for move, copy and symbolic links."""

    @pytest.fixture
    def source(self, workdir: Path) -> Path:
        """A small file with content."""
        path = workdir + "source.txt"
        with open(path, "w") as f:
            f.write("payload")
        return path

    def test_move(self, workdir: Path, source: Path):
        """Test moving to a free destination."""
        destination = source.move_to(workdir + "moved.txt")

        assert destination == workdir + "moved.txt"
        assert destination.is_file
        assert not source.exists

    def test_move_onto_existing(self, workdir: Path, source: Path):
        """Test that move refuses to replace."""
        other = workdir + "other.txt"
        other.create_file()

        with pytest.raises(MoveFileError) as exc_info:
            source.move_to(other)

        assert exc_info.value.reason is Reason.ALREADY_EXISTS
        assert exc_info.value.destination == other

    def test_copy_file_and_directory(self, workdir: Path, source: Path):
        """Test copying a file and a directory tree."""
        copied = source.copy_to(workdir + "copy.txt")
        with open(copied) as f:
            assert f.read() == "payload"

        tree = workdir + "tree"
        (tree + "inner").create_directory()
        source.copy_to(tree + "inner/file.txt")
        tree.copy_to(workdir + "tree2")

        assert (workdir + "tree2/inner/file.txt").is_file

    def test_copy_overwrite(self, workdir: Path, source: Path):
        """Test copy onto an existing destination."""
        destination = workdir + "existing.txt"
        destination.create_file()

        with pytest.raises(CopyFileError) as exc_info:
            source.copy_to(destination)
        assert exc_info.value.reason is Reason.ALREADY_EXISTS

        source.copy_to(destination, overwrite=True)
        assert destination.attributes().size == len("payload")

    def test_copy_confirmation_hook(self, workdir: Path, source: Path):
        """Test that the hook sees both paths and can cancel."""
        seen = []

        def refuse(src: Path, dst: Path) -> bool:
            seen.append((src, dst))
            return False

        destination = workdir + "refused.txt"
        with pytest.raises(CopyFileError) as exc_info:
            source.copy_to(destination, should_copy=refuse)

        assert exc_info.value.reason is Reason.CANCELLED
        assert seen == [(source, destination)]
        assert not destination.exists

    def test_symlink_at_path(self, workdir: Path, source: Path):
        """Test creating a link at an explicit path."""
        link = source.symlink_at(workdir + "link.txt")

        assert link.is_symlink
        assert link.resolve() == source.resolve()
        assert link.attributes().file_type is FileType.SYMBOLIC_LINK

    def test_symlink_into_directory(self, workdir: Path, source: Path):
        """Test that a link into a directory keeps the source name."""
        folder = workdir + "folder"
        folder.create_directory()

        link = source.symlink_at(folder)

        assert link == folder + "source.txt"
        assert link.is_symlink

    def test_symlink_existing(self, workdir: Path, source: Path):
        """Test link creation over an existing item."""
        taken = workdir + "taken"
        taken.create_file()

        with pytest.raises(CreateSymlinkError) as exc_info:
            source.symlink_at(taken)
        assert exc_info.value.reason is Reason.ALREADY_EXISTS

        source.symlink_at(taken, overwrite=True)
        assert taken.is_symlink


class TestQueries:
    """Test cases for enumeration, attributes and resolution."""

    @pytest.fixture
    def tree(self, workdir: Path) -> Path:
        """A small directory tree."""
        (workdir + "b/deep").create_directory()
        (workdir + "a.txt").create_file()
        (workdir + "b/c.txt").create_file()
        (workdir + "b/deep/d.py").create_file()
        return workdir

    def test_children(self, tree: Path):
        """Test direct and recursive listing."""
        assert tree.children() == [tree + "a.txt", tree + "b"]
        assert list(tree) == tree.children()
        assert tree.children(recursive=True) == [
            tree + "a.txt",
            tree + "b",
            tree + "b/c.txt",
            tree + "b/deep",
            tree + "b/deep/d.py",
        ]

    def test_children_of_file(self, tree: Path):
        """Test listing something that is not a directory."""
        with pytest.raises(ReadDirectoryError) as exc_info:
            (tree + "a.txt").children()

        assert exc_info.value.reason is Reason.NOT_A_DIRECTORY

    def test_find(self, tree: Path):
        """Test depth-limited and filtered search."""
        assert tree.find(search_depth=0) == tree.children()
        assert tree.find(condition=lambda p: p.suffix == "py") == [tree + "b/deep/d.py"]
        assert tree.find(search_depth=1, condition=lambda p: p.suffix == "py") == []

    def test_attributes(self, tree: Path):
        """Test attribute retrieval."""
        attributes = (tree + "a.txt").attributes()

        assert attributes.file_type is FileType.REGULAR
        assert attributes.size == 0
        assert attributes.owner_id == os.getuid()
        assert attributes.reference_count == 1
        assert attributes.filesystem_file_number == os.stat(tree + "a.txt").st_ino
        assert (tree + "b").attributes().file_type is FileType.DIRECTORY

    def test_attributes_missing(self, workdir: Path):
        """Test attributes of nothing."""
        with pytest.raises(AttributesError):
            (workdir + "nothing").attributes()

    def test_resolve(self, tree: Path):
        """Test that resolve follows .. segments."""
        dotted = tree + "b/deep/../c.txt"

        assert dotted.standardized != (tree + "b/c.txt")
        assert dotted.resolve() == (tree + "b/c.txt").resolve()

        with pytest.raises(ResolveError) as exc_info:
            (tree + "nothing/..").resolve()
        assert exc_info.value.reason is Reason.NOT_FOUND


class TestLocations:
    """Test cases for well-known locations, URLs and the working directory."""

    def test_home(self, fake_home):
        """Test the home directory constructor."""
        assert Path.home() == Path("~")
        assert Path.home() == Path(str(fake_home))

    def test_temporary_exists(self):
        """Test the temporary directory constructor."""
        assert Path.temporary().is_directory

    def test_url_round_trip(self, workdir: Path):
        """Test conversion to and from file URLs."""
        path = workdir + "with space.txt"

        assert path.url.startswith("file:///")
        assert "%20" in path.url
        assert Path.from_url(path.url) == path

    def test_from_url_rejects_remote(self):
        """Test that only local file URLs are accepted."""
        with pytest.raises(ValueError):
            Path.from_url("https://example.com/a")
        with pytest.raises(ValueError):
            Path.from_url("file://server/share")

    def test_change_directory_restores(self, workdir: Path):
        """Test the working directory is scoped to the block."""
        previous = Path.current()

        with workdir.change_directory() as inside:
            assert inside is workdir
            assert Path.current().resolve() == workdir.resolve()

        assert Path.current() == previous

    def test_change_directory_restores_on_error(self, workdir: Path):
        """Test restoration when the block raises."""
        previous = Path.current()

        with pytest.raises(RuntimeError):
            with workdir.change_directory():
                raise RuntimeError("boom")

        assert Path.current() == previous

    def test_change_directory_missing(self, workdir: Path):
        """Test entering a directory that does not exist."""
        with pytest.raises(ChangeDirectoryError):
            with (workdir + "nowhere").change_directory():
                pass

    def test_change_directory_serializes_threads(self, workdir: Path):
        """Test that another thread waits for the block to end."""
        entered = threading.Event()
        order = []

        def other() -> None:
            entered.wait()
            with workdir.change_directory():
                order.append("other")

        thread = threading.Thread(target=other)
        thread.start()
        with workdir.change_directory():
            entered.set()
            thread.join(timeout=0.2)
            order.append("main")
        thread.join(timeout=5)

        assert order == ["main", "other"]


class TestErrors:
    """Test cases for the error hierarchy."""

    def test_message(self):
        """Test the rendered message."""
        error = MoveFileError("/a", Reason.ALREADY_EXISTS, destination="/b")

        assert str(error) == "move failed for /a -> /b: already exists"
        assert isinstance(error, FileSystemError)
        assert isinstance(error, OSError)

    def test_from_os_error(self):
        """Test errno mapping."""
        error = DeleteFileError.from_os_error("/x", PermissionError(13, "Permission denied"))

        assert error.reason is Reason.PERMISSION_DENIED
        assert error.detail == "Permission denied"

    def test_unknown_errno(self):
        """Test that unmapped codes become UNKNOWN."""
        assert Reason.from_errno(None) is Reason.UNKNOWN
        assert Reason.from_errno(-1) is Reason.UNKNOWN

    def test_pickle(self):
        """Test that errors survive pickling."""
        error = CopyFileError("/a", Reason.CANCELLED, destination="/b")

        restored = pickle.loads(pickle.dumps(error))

        assert type(restored) is CopyFileError
        assert restored.reason is Reason.CANCELLED
        assert str(restored) == str(error)
