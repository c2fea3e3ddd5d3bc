# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from dataclasses import dataclass, field
import logging
from layerbom.fs import FilesystemTree
from layerbom.image_config import Accounts
from layerbom.path_utils import TreePath

PASSWD_PATH: TreePath = "etc/passwd"
GROUP_PATH: TreePath = "etc/group"
GECOS = "Account created by layerbom"


@dataclass
class PasswdEntry:
    username: str
    password: str
    uid: int
    gid: int
    gecos: str
    homedir: str
    shell: str

    @classmethod
    def parse(cls, line: str) -> "PasswdEntry":
        parts = line.split(":")
        if len(parts) != 7:
            raise ValueError(f"malformed passwd entry '{line}'")
        username, password, uid, gid, gecos, homedir, shell = parts
        return PasswdEntry(username, password, int(uid), int(gid), gecos, homedir, shell)

    def __str__(self) -> str:
        return ":".join([self.username, self.password, str(self.uid), str(self.gid), self.gecos, self.homedir, self.shell])


@dataclass
class GroupEntry:
    groupname: str
    password: str
    gid: int
    members: list[str] = field(default_factory=list[str])

    @classmethod
    def parse(cls, line: str) -> "GroupEntry":
        parts = line.split(":")
        if len(parts) != 4:
            raise ValueError(f"malformed group entry '{line}'")
        groupname, password, gid, members = parts
        return GroupEntry(groupname, password, int(gid), [m for m in members.split(",") if m])

    def __str__(self) -> str:
        return ":".join([self.groupname, self.password, str(self.gid), ",".join(self.members)])


def _read_lines(tree: FilesystemTree, path: TreePath) -> list[str]:
    if not tree.exists(path):
        return []
    return [line for line in tree.read_file(path).decode("utf-8").splitlines() if line.strip()]


def _write_lines(tree: FilesystemTree, path: TreePath, lines: list[str]) -> None:
    tree.mkdir_all("etc")
    tree.write_file(path, "".join(f"{line}\n" for line in lines).encode("utf-8"), 0o644)


def read_passwd(tree: FilesystemTree) -> list[PasswdEntry]:
    return [PasswdEntry.parse(line) for line in _read_lines(tree, PASSWD_PATH)]


def read_group(tree: FilesystemTree) -> list[GroupEntry]:
    return [GroupEntry.parse(line) for line in _read_lines(tree, GROUP_PATH)]


def mutate_accounts(tree: FilesystemTree, accounts: Accounts) -> None:
    """
    Adds the configured groups to etc/group and the configured users to etc/passwd.
    Entries that already exist with the same name are kept as they are.
    Home directories of new users are created and owned by the user.
    """
    if accounts.groups:
        groups = read_group(tree)
        known_groups = {g.groupname for g in groups}
        for group in accounts.groups:
            if group.groupname in known_groups:
                logging.debug(f"Group {group.groupname} already exists")
                continue
            groups.append(GroupEntry(group.groupname, "x", group.gid, list(group.members)))
            known_groups.add(group.groupname)
        _write_lines(tree, GROUP_PATH, [str(g) for g in groups])

    if accounts.users:
        users = read_passwd(tree)
        known_users = {u.username for u in users}
        for user in accounts.users:
            if user.username in known_users:
                logging.debug(f"User {user.username} already exists")
                continue
            users.append(PasswdEntry(user.username, "x", user.uid, user.primary_gid, GECOS, user.home, user.shell))
            known_users.add(user.username)
            tree.mkdir_all(user.home, 0o755)
            tree.chown(user.home, user.uid, user.primary_gid)
        _write_lines(tree, PASSWD_PATH, [str(u) for u in users])
