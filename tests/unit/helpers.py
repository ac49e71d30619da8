import json

from index_checker.models import Manifest, SemVer

COMMIT = "5b5edcba47eb5f957a34a6224b3d9b976a4fc911"


def descriptor_line(org="acme", name="widgets", version=(0, 2, 0), path="", commit=COMMIT,
                    dependencies=None, pre=""):
    """One index line, in the exact format the index stores."""
    ident = {"org": org, "name": name, "commit": commit}
    if path:
        ident["path"] = path
    major, minor, patch = version
    return json.dumps({
        "id": {"github": ident},
        "version": {"major": major, "minor": minor, "patch": patch, "pre": pre},
        "minimal_nickel_version": {"major": 1, "minor": 11, "patch": 0, "pre": ""},
        "dependencies": dependencies or {},
        "authors": ["A. Uthor"],
        "description": "Widgets for everyone",
        "keywords": ["widgets"],
        "license": "MIT",
        "v": 0,
    })


def dependency(org, name, version, path=""):
    ident = {"org": org, "name": name}
    if path:
        ident["path"] = path
    return {"id": {"github": ident}, "version": version}


def added_file_diff(path, *lines):
    """A git diff creating `path` with the given lines."""
    body = "".join(f"+{line}\n" for line in lines)
    return (
        f"diff --git a/{path} b/{path}\n"
        "new file mode 100644\n"
        "index 0000000..17e1150\n"
        "--- /dev/null\n"
        f"+++ b/{path}\n"
        f"@@ -0,0 +1,{len(lines)} @@\n"
        f"{body}"
    )


class FakeGitHub:
    """Records membership checks; members are given up front."""

    def __init__(self, members=(), error=None):
        self.members = set(members)
        self.error = error
        self.calls = []

    def is_public_member(self, org, user):
        self.calls.append((org, user))
        if self.error:
            raise self.error
        return (org, user) in self.members


def manifest_with_version(version):
    return Manifest(name="widgets", version=SemVer.parse(version))
