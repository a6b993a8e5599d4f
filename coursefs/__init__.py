"""
coursefs - Read-only access to the file area of a Stud.IP course.

Main API:
    from coursefs import CourseVFS, load_config

    # Fetch the course's folder tree once
    vfs = CourseVFS.from_config(load_config())

    # Browse the snapshot
    for entry in vfs.list("Lectures"):
        print(entry.name, entry.size)

    # Download a file
    with vfs.open("Lectures/week1.pdf") as stream:
        data = stream.read()

    # Always close when done
    vfs.close()
"""

from .config import CourseFSConfig, load_config
from .vfs import CourseVFS

__version__ = "0.1.0"
__all__ = ["CourseVFS", "CourseFSConfig", "load_config"]
