"""Render the Dockerfile for a build specification."""

import logging

from .options import BuildSpecification, PackageManager

__all__ = [
    "render",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_IMAGE = "ghcr.io/oracle/oraclelinux:7-slim"
PATCH_DIR = "/tmp/imagetool/patches"
FILES_DIR = "/tmp/imagetool/files"
OS_PACKAGES = ["gzip", "tar", "unzip"]

_INSTALL_COMMANDS = {
    PackageManager.YUM: "yum -y install {packages} && yum -y clean all && rm -rf /var/cache/yum",
    PackageManager.DNF: "dnf -y install {packages} && dnf clean all",
    PackageManager.MICRODNF: "microdnf install {packages} && microdnf clean all",
    PackageManager.APT: "apt-get -y update && apt-get -y install {packages} && rm -rf /var/lib/apt/lists/*",
    PackageManager.ZYPPER: "zypper -nq install {packages} && zypper -nq clean",
}


def render(spec: BuildSpecification) -> str:
    """Return the Dockerfile text for the build."""
    user, group = spec.user_id, spec.group_id
    lines = [
        f"# Build {spec.build_id} for {spec.tag}",
        f"FROM {spec.base_image or DEFAULT_BASE_IMAGE}",
        "",
        "ARG http_proxy",
        "ARG https_proxy",
        "ARG no_proxy",
        "",
        "USER root",
    ]
    if install := _INSTALL_COMMANDS.get(spec.package_manager):
        lines.append("RUN " + install.format(packages=" ".join(OS_PACKAGES)))
    lines.extend(
        [
            f"RUN if [ -z \"$(getent group {group})\" ]; then groupadd {group}; fi \\",
            f" && if [ -z \"$(getent passwd {user})\" ]; then useradd -g {group} {user}; fi",
        ]
    )
    if not spec.install_java and spec.java_home:
        lines.append(f"ENV JAVA_HOME={spec.java_home}")
    if spec.patch_files:
        lines.append("")
        lines.append(f"COPY --chown={user}:{group} patches/ {PATCH_DIR}/")
    if spec.additional_files:
        lines.append(f"COPY --chown={user}:{group} files/ {FILES_DIR}/")
    if spec.additional_build_commands:
        lines.append("")
        lines.extend(spec.additional_build_commands)
    lines.extend(["", f"USER {user}", ""])
    return "\n".join(lines)
