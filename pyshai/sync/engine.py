"""Core sync engine for executing sync operations."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

from ..exceptions import (
    ConfigurationAlreadyInstalledError,
    ShaiInvalidInputError,
    ShaiInvalidResponseError,
)
from ..output import OutputFormatter
from ..prompts import ClickPrompter, Prompter
from ..utils import parse_configuration_name
from .comparator import TreeDiff, compare_trees
from .diff import render_diff
from .manifest import (
    DEFAULT_EXCLUDE,
    DEFAULT_INCLUDE,
    MANIFEST_FILE_NAME,
    SyncManifest,
    load_manifest,
    manifest_exists,
    read_manifest_slug,
    remove_manifest,
    save_manifest,
)
from .operations import SyncOperations
from .safety import validate_tree_paths
from .scanner import LocalTreeBuilder
from .tree import Tree, TreeNode

if TYPE_CHECKING:
    from ..api import ShaiClient

logger = logging.getLogger(__name__)

DIFF_CONTEXT_LINES = 3


def derive_include_patterns(tree: Tree) -> list[str]:
    """Include patterns covering every top-level entry of a tree.

    Top-level folders become ``folder/**``, top-level files are listed
    verbatim.
    """
    patterns = set()
    for node in tree:
        head, sep, _ = node.path.partition("/")
        if sep or node.is_folder:
            patterns.add(f"{head}/**")
        else:
            patterns.add(node.path)
    return sorted(patterns)


class SyncEngine:
    """Orchestrates synchronization between a directory and a remote tree.

    Every operation fetches at most one remote tree, builds at most one
    local tree and applies changes in a single ordered pass. Remote trees
    are validated with ``validate_tree_paths`` before any filesystem access.
    """

    def __init__(
        self,
        client: ShaiClient,
        base_path: Union[str, Path],
        output: Optional[OutputFormatter] = None,
        prompter: Optional[Prompter] = None,
        username: Optional[str] = None,
    ):
        """Initialize sync engine.

        Args:
            client: shai API client
            base_path: Directory holding the configuration files
            output: Output formatter for displaying progress/status
            prompter: Source of interactive confirmations
            username: Logged-in user, used to qualify display names
        """
        self.client = client
        self.base_path = Path(base_path)
        self.output = output or OutputFormatter()
        self.prompter: Prompter = prompter or ClickPrompter()
        self.username = username
        self.operations = SyncOperations(self.base_path)
        self.builder = LocalTreeBuilder(self.base_path)

    # =========================
    # Helpers
    # =========================

    def display_name(self, identifier: str) -> str:
        if "/" in identifier or not self.username:
            return identifier
        return f"{self.username}/{identifier}"

    def fetch_remote_tree(self, identifier: str) -> Tree:
        """Fetch a remote tree and validate all of its paths.

        Raises:
            ShaiSecurityError: If any path is unsafe for ``base_path``
        """
        with self.output.spinner(f"Fetching {identifier}..."):
            tree = self.client.get_tree(identifier)
        validate_tree_paths(tree, self.base_path)
        logger.debug(f"Fetched {len(tree)} node(s) for {identifier}")
        return tree

    def build_local_tree(self, manifest: SyncManifest) -> Tree:
        return self.builder.build(manifest.include, manifest.exclude)

    @staticmethod
    def _create_empty_stats(dry_run: bool = False) -> dict[str, Any]:
        return {
            "created": 0,
            "updated": 0,
            "deleted": 0,
            "skipped": 0,
            "conflicts": 0,
            "dry_run": dry_run,
            "cancelled": False,
        }

    def _check_type_clashes(self, nodes: list[TreeNode]) -> None:
        """Refuse to apply nodes whose local path has the wrong type.

        Every parent folder of a node must be a directory (or missing) as
        well, so nothing is written when any node cannot be applied.

        Raises:
            ShaiInvalidInputError: If a file would replace a directory, a
                folder would replace a file, or a parent folder is a file
        """
        checked_parents: set[str] = set()
        for node in nodes:
            parts = node.path.split("/")
            for depth in range(1, len(parts)):
                parent = "/".join(parts[:depth])
                if parent in checked_parents:
                    continue
                checked_parents.add(parent)
                parent_path = self.operations.local_path(parent)
                if parent_path.exists() and not parent_path.is_dir():
                    raise ShaiInvalidInputError(
                        f"Cannot create {node.path}: {parent} exists and is not "
                        "a directory"
                    )

            local_path = self.operations.local_path(node.path)
            if node.is_file and local_path.is_dir():
                raise ShaiInvalidInputError(
                    f"Cannot write file {node.path}: a directory exists at that path"
                )
            if node.is_folder and local_path.exists() and not local_path.is_dir():
                raise ShaiInvalidInputError(
                    f"Cannot create folder {node.path}: a file exists at that path"
                )

    def _show_file_diff(
        self,
        path: str,
        before: bytes,
        after: bytes,
        before_label: str,
        after_label: str,
    ) -> None:
        old_name = f"{before_label} {path}" if before_label != "/dev/null" else before_label
        new_name = f"{after_label} {path}" if after_label != "/dev/null" else after_label
        self.output.info(f"--- {old_name}")
        self.output.info(f"+++ {new_name}")
        self.output.diff(render_diff(before, after, DIFF_CONTEXT_LINES))
        self.output.blank()

    def _confirm_overwrite(
        self,
        question: str,
        overwrites: dict[str, tuple[bytes, bytes]],
        allow_skip: bool = False,
    ) -> str:
        """Ask whether existing local files may be overwritten.

        Args:
            question: Prompt text
            overwrites: path -> (local content, remote content)
            allow_skip: Offer to continue without overwriting

        Returns:
            "yes", "skip" or "no"
        """
        options = [("yes", "Yes, overwrite")]
        if allow_skip:
            options.append(("skip", "No, only create new files"))
        options.extend([("no", "No (abort)"), ("diff", "Show diff")])

        choice = self.prompter.select_one(question, options)
        if choice != "diff":
            return choice

        for path, (local_content, remote_content) in overwrites.items():
            self._show_file_diff(path, local_content, remote_content, "local", "remote")
        return "yes" if self.prompter.ask_yes_no(question) else "no"

    # =========================
    # Authoring Operations
    # =========================

    def init(
        self,
        name: str,
        description: Optional[str] = None,
        visibility: str = "private",
        include_patterns: Optional[list[str]] = None,
    ) -> SyncManifest:
        """Create a remote configuration and bind this directory to it.

        Returns:
            The written manifest

        Raises:
            ShaiInvalidInputError: If the directory already has a manifest
        """
        if manifest_exists(self.base_path):
            raise ShaiInvalidInputError(
                f"A {MANIFEST_FILE_NAME} file already exists in this directory. "
                "Use `shai push` to upload changes to the existing configuration."
            )

        with self.output.spinner("Creating configuration..."):
            response = self.client.create_configuration(
                name=name, description=description or None, visibility=visibility
            )

        configuration = response.get("configuration") or response
        slug = configuration.get("slug") if isinstance(configuration, dict) else None
        if not slug:
            raise ShaiInvalidResponseError("Server did not return a configuration slug")

        manifest = SyncManifest(
            slug=slug,
            include=list(include_patterns or DEFAULT_INCLUDE),
            exclude=list(DEFAULT_EXCLUDE),
        )
        save_manifest(manifest, self.base_path)
        logger.info(f"Initialized {slug} in {self.base_path}")
        return manifest

    def status(self) -> TreeDiff:
        """Compare local files with the remote configuration.

        Returns:
            TreeDiff with local as source: ``created`` are new local files,
            ``removed`` exist only remotely
        """
        manifest = load_manifest(self.base_path)
        remote_tree = self.fetch_remote_tree(manifest.slug)
        local_tree = self.build_local_tree(manifest)
        return compare_trees(local_tree, remote_tree)

    def diff(self, context_lines: int = DIFF_CONTEXT_LINES) -> bool:
        """Print unified diffs between remote and local files.

        Returns:
            True if any difference was found
        """
        manifest = load_manifest(self.base_path)
        remote_tree = self.fetch_remote_tree(manifest.slug)
        local_tree = self.build_local_tree(manifest)
        changes = compare_trees(local_tree, remote_tree)

        for path, (local_content, remote_content) in changes.modified.items():
            self._show_file_diff(path, remote_content, local_content, "remote", "local")

        for path, local_content in changes.created.items():
            self._show_file_diff(path, b"", local_content, "/dev/null", "local")

        for path, remote_content in changes.removed.items():
            self._show_file_diff(path, remote_content, b"", "remote", "/dev/null")

        if not changes.has_changes:
            self.output.info("No differences found.")
        return changes.has_changes

    def push(self, dry_run: bool = False) -> dict[str, Any]:
        """Upload the local tree as a full replacement of the remote tree.

        Raises:
            ShaiInvalidInputError: If no local files match the manifest
        """
        manifest = load_manifest(self.base_path)
        tree = self.build_local_tree(manifest)

        if not tree:
            raise ShaiInvalidInputError(
                "No files found matching include patterns. "
                f"Check your {MANIFEST_FILE_NAME} include patterns."
            )

        display_name = self.display_name(manifest.slug)
        stats = self._create_empty_stats(dry_run)

        if dry_run:
            self.output.header(f"Would push to {display_name}:")
            for node in tree:
                self.output.file_operation("uploading", node.display_path)
            self.output.blank()
            self.output.info("No changes made (dry run)")
            stats["uploaded"] = len(tree)
            return stats

        self.output.header(f"Pushing to {display_name}...")
        self.output.blank()
        for node in tree:
            self.output.file_operation("uploading", node.display_path)

        with self.output.spinner("Uploading..."):
            self.client.update_tree(manifest.slug, tree)

        stats["uploaded"] = len(tree)
        self.output.blank()
        self.output.success(f"Pushed {len(tree)} items")
        return stats

    # =========================
    # Adoption Operations
    # =========================

    def pull(self, dry_run: bool = False, force: bool = False) -> dict[str, Any]:
        """Bring remote changes into the working directory.

        Remote-only files are created, files whose content differs are
        overwritten after confirmation (or directly with ``force``). Local
        files are never deleted.
        """
        manifest = load_manifest(self.base_path)
        display_name = self.display_name(manifest.slug)
        remote_tree = self.fetch_remote_tree(manifest.slug)

        local_snapshot = self.builder.read_paths(remote_tree.files())
        changes = compare_trees(remote_tree, local_snapshot)

        missing_folders = [
            path
            for path in remote_tree.folders()
            if not self.operations.local_path(path).is_dir()
        ]
        creates = Tree.canonical(
            [TreeNode.folder(path) for path in missing_folders]
            + [TreeNode.file(path, content) for path, content in changes.created.items()]
        )
        updates = changes.modified
        stats = self._create_empty_stats(dry_run)

        if not creates and not updates:
            self.output.info(f"Already up to date with {display_name}.")
            return stats

        self._check_type_clashes(list(creates))

        if dry_run:
            self.output.header(f"Would pull from {display_name}:")
            for node in creates:
                self.output.file_operation("would-create", node.display_path)
            for path in updates:
                self.output.file_operation("would-update", path)
            self.output.blank()
            self.output.info("No changes made (dry run)")
            stats["created"] = len(creates)
            stats["updated"] = len(updates)
            return stats

        apply_updates = True
        if updates and not force:
            stats["conflicts"] = len(updates)
            self.output.warning("The following files differ from the remote version:")
            for path in updates:
                self.output.file_operation("conflict", path)
            self.output.blank()

            overwrites = {
                path: (local_content, remote_content)
                for path, (remote_content, local_content) in updates.items()
            }
            choice = self._confirm_overwrite(
                "Overwrite local changes?", overwrites, allow_skip=True
            )
            if choice == "no":
                self.output.info("Pull cancelled")
                stats["cancelled"] = True
                return stats
            apply_updates = choice == "yes"

        self.output.header(f"Pulling {display_name}...")
        self.output.blank()

        for node in creates:
            self.operations.apply_node(node)
            self.output.file_operation("created", node.display_path)
            stats["created"] += 1

        for path, (remote_content, _) in updates.items():
            if not apply_updates:
                stats["skipped"] += 1
                continue
            self.operations.write_file(path, remote_content)
            self.output.file_operation("updated", path)
            stats["updated"] += 1

        self.output.blank()
        self.output.success(
            f"Pulled {stats['created']} new and {stats['updated']} updated items"
        )
        return stats

    def install(
        self,
        identifier: str,
        force: bool = False,
        dry_run: bool = False,
    ) -> dict[str, Any]:
        """Install a remote configuration into the working directory.

        Args:
            identifier: ``slug`` or ``owner/slug``
            force: Install even if a manifest exists and overwrite existing
                files without asking
            dry_run: Only show what would be installed

        Raises:
            ConfigurationAlreadyInstalledError: If the directory already has a
                manifest and ``force`` is not set
        """
        had_manifest = manifest_exists(self.base_path)
        if had_manifest and not force:
            existing_slug = read_manifest_slug(self.base_path)
            raise ConfigurationAlreadyInstalledError(
                "A configuration is already present in this directory.",
                existing_slug=existing_slug,
            )

        remote_tree = self.fetch_remote_tree(identifier)
        stats = self._create_empty_stats(dry_run)

        conflicts = [
            node.path
            for node in remote_tree
            if node.is_file and self.operations.exists(node.path)
        ]
        stats["conflicts"] = len(conflicts)
        nodes = remote_tree.creation_order()
        self._check_type_clashes(nodes)

        if dry_run:
            self.output.header("Would install:")
            for node in nodes:
                self.output.file_operation("would-create", node.display_path)
            for path in conflicts:
                self.output.file_operation("conflict", path)
            self.output.blank()
            self.output.info("No changes made (dry run)")
            stats["created"] = len(nodes)
            return stats

        if conflicts and not force:
            self.output.blank()
            self.output.warning("The following files already exist:")
            for path in conflicts:
                self.output.file_operation("conflict", path)
            self.output.blank()

            remote_files = remote_tree.files()
            overwrites = {
                path: (self.operations.read_file(path), remote_files[path])
                for path in conflicts
            }
            if self._confirm_overwrite("Overwrite existing files?", overwrites) != "yes":
                self.output.info("Installation cancelled")
                stats["cancelled"] = True
                return stats

        self.output.header(f"Installing {identifier}...")
        self.output.blank()

        for node in nodes:
            self.operations.apply_node(node)
            self.output.file_operation("created", node.display_path)
            stats["created"] += 1

        if not had_manifest and MANIFEST_FILE_NAME not in remote_tree:
            save_manifest(
                SyncManifest(
                    slug=identifier,
                    include=derive_include_patterns(remote_tree),
                    exclude=list(DEFAULT_EXCLUDE),
                ),
                self.base_path,
            )

        self.output.blank()
        self.output.success(f"Installed {stats['created']} items")
        return stats

    def uninstall(
        self,
        identifier: str,
        dry_run: bool = False,
        assume_yes: bool = False,
    ) -> dict[str, Any]:
        """Remove the files of a remote configuration from the directory.

        Files are removed first, then folders deepest-first, and a folder is
        only removed when it is empty afterwards.
        """
        remote_tree = self.fetch_remote_tree(identifier)
        stats = self._create_empty_stats(dry_run)

        files_to_remove = sorted(
            node.path
            for node in remote_tree
            if node.is_file and self.operations.local_path(node.path).is_file()
        )

        candidate_folders = set(remote_tree.folders())
        for node in remote_tree:
            if node.is_file:
                parts = node.path.split("/")[:-1]
                for i in range(len(parts)):
                    candidate_folders.add("/".join(parts[: i + 1]))
        folders_to_remove = sorted(
            (
                path
                for path in candidate_folders
                if self.operations.local_path(path).is_dir()
            ),
            reverse=True,
        )

        if not files_to_remove and not folders_to_remove:
            self.output.info(f"No files from '{identifier}' found in {self.base_path}")
            return stats

        if dry_run:
            self.output.header("Would remove:")
            for path in files_to_remove:
                self.output.file_operation("would-delete", path)
            for path in folders_to_remove:
                self.output.file_operation("would-delete", f"{path}/")
            self.output.blank()
            self.output.info("No changes made (dry run)")
            stats["deleted"] = len(files_to_remove) + len(folders_to_remove)
            return stats

        question = (
            f"Remove {len(files_to_remove)} files and {len(folders_to_remove)} "
            f"folders from '{identifier}'?"
        )
        if not assume_yes and not self.prompter.ask_yes_no(question):
            self.output.info("Uninstall cancelled")
            stats["cancelled"] = True
            return stats

        self.output.header(f"Uninstalling {identifier}...")
        self.output.blank()

        for path in files_to_remove:
            if self.operations.delete_file(path):
                self.output.file_operation("deleted", path)
                stats["deleted"] += 1

        for path in folders_to_remove:
            if self.operations.delete_empty_folder(path):
                self.output.file_operation("deleted", f"{path}/")
                stats["deleted"] += 1
            else:
                stats["skipped"] += 1

        if self._manifest_bound_to(identifier) and remove_manifest(self.base_path):
            self.output.file_operation("deleted", MANIFEST_FILE_NAME)

        self.output.blank()
        self.output.success(f"Uninstalled {identifier}")
        return stats

    def _manifest_bound_to(self, identifier: str) -> bool:
        if not manifest_exists(self.base_path):
            return False
        slug = read_manifest_slug(self.base_path)
        return slug == identifier or slug == parse_configuration_name(identifier)[1]
