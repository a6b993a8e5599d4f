"""Read-only virtual file system over a course's remote files.

The remote folder hierarchy is fetched once into an immutable snapshot:

    ```
    /                          # Course root folder (DirectoryNode)
    ├── Lectures/              # Folder (DirectoryNode)
    │   ├── week1.pdf          # File reference (FileNode)
    │   └── week2.pdf
    ├── Exercises/
    └── syllabus.txt
    ```

Components:

    - TreeBuilder: Fetches the hierarchy concurrently on a bounded pool
    - PathResolver: Walks the snapshot by exact name match
    - list_entries: Projects a directory into sorted DirectoryEntry/FileEntry
    - CourseVFS: Read-only browse surface tying it all together

Usage Example:

    ```python
    from coursefs.config import load_config
    from coursefs.vfs import CourseVFS

    with CourseVFS.from_config(load_config()) as vfs:
        for entry in vfs.list("Lectures"):
            print(entry.name, entry.size)

        with vfs.open("Lectures/week1.pdf") as stream:
            data = stream.read()
    ```
"""

from coursefs.vfs.base import (
    Node,
    DirectoryNode,
    FileNode,
    NodeType,
    DIRECTORY_SIZE,
)
from coursefs.vfs.builder import TreeBuilder, BuildStats
from coursefs.vfs.resolver import PathResolver, split_path, resolve_segments
from coursefs.vfs.listing import DirectoryEntry, FileEntry, Entry, list_entries
from coursefs.vfs.course_vfs import CourseVFS

__all__ = [
    # Main entry point
    "CourseVFS",
    # Snapshot nodes
    "Node",
    "DirectoryNode",
    "FileNode",
    "NodeType",
    "DIRECTORY_SIZE",
    # Build
    "TreeBuilder",
    "BuildStats",
    # Path resolution
    "PathResolver",
    "split_path",
    "resolve_segments",
    # Listing
    "DirectoryEntry",
    "FileEntry",
    "Entry",
    "list_entries",
]
