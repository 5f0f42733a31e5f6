"""MCP servers from the official registry (registry.modelcontextprotocol.io)."""

from typing import Optional

from ..config import TTL
from ..console import console
from ..models import Resource, ResourceType, mcp_config_snippet
from .base import SourceAdapter

MCP_REGISTRY_URL = "https://registry.modelcontextprotocol.io/v0.1/servers"
MAX_PAGES = 4


def _package_ids(server: dict) -> dict[str, str]:
    """Map registry type (npm, pypi, oci/docker) to package identifier."""
    packages = server.get("packages") or {}
    if isinstance(packages, dict):
        return {k: v for k, v in packages.items() if isinstance(v, str)}

    found: dict[str, str] = {}
    for package in packages:
        if not isinstance(package, dict):
            continue
        registry = (package.get("registryType") or package.get("registry_name") or "").lower()
        identifier = package.get("identifier") or package.get("name")
        if registry and identifier:
            found.setdefault("docker" if registry == "oci" else registry, identifier)
    return found


def _install(server_name: str, packages: dict[str, str], docker: Optional[str]):
    if "npm" in packages:
        npm = packages["npm"]
        return f"npx -y {npm}", mcp_config_snippet(server_name, "npx", ["-y", npm])
    if "pypi" in packages:
        pypi = packages["pypi"]
        return f"pip install {pypi}", mcp_config_snippet(server_name, "python", ["-m", pypi])
    if docker:
        return f"docker pull {docker}", mcp_config_snippet(server_name, "docker", ["run", "-i", docker])
    return "", None


def parse_server(entry: dict) -> Resource:
    # v0.1 wraps each server as {"server": {...}, "_meta": {...}}
    server = entry["server"] if isinstance(entry.get("server"), dict) else entry
    name = server.get("name", "")
    packages = _package_ids(server)
    remotes = server.get("remotes")
    docker = packages.get("docker")
    if not docker and isinstance(remotes, dict):
        docker = remotes.get("docker")

    install_command, config_snippet = _install(name.lower(), packages, docker)
    repository = server.get("repository") or {}

    return Resource(
        name=name,
        description=server.get("description") or "No description",
        type=ResourceType.MCP.value,
        install_command=install_command,
        config_snippet=config_snippet,
        source="modelcontextprotocol.io",
        url=(
            server.get("websiteUrl")
            or (repository.get("url") if isinstance(repository, dict) else None)
            or f"https://registry.modelcontextprotocol.io/servers/{name}"
        ),
        version=server.get("version"),
    )


class McpRegistrySource(SourceAdapter):
    name = "modelcontextprotocol.io"
    type = ResourceType.MCP.value
    ttl = TTL.MCP_REGISTRY
    cache_key = "mcp-registry:servers"
    max_requests = MAX_PAGES

    async def load(self) -> list[Resource]:
        servers: list[Resource] = []
        cursor = None

        for page in range(1, MAX_PAGES + 1):
            params = {"cursor": cursor} if cursor else None
            response = await self.client.get(MCP_REGISTRY_URL, params=params)
            if page > 1 and response.status_code >= 400:
                console.print(
                    f"[yellow]Warning: MCP registry page {page} returned HTTP {response.status_code}[/yellow]"
                )
                break
            response.raise_for_status()
            data = response.json()

            batch = data.get("servers") or []
            if not batch:
                break
            servers.extend(parse_server(s) for s in batch if isinstance(s, dict))

            cursor = (data.get("metadata") or {}).get("nextCursor")
            if not cursor:
                break

        return servers
