"""
Application registration against the control plane.

Registration always sends ``force=true``: registering an existing
``(name, type)`` overwrites it instead of failing. The client never deletes a
registration.
"""

from .catalog import fetch_catalog, parse_catalog
from .config.settings import FailurePolicy
from .exceptions import AuthenticationError, DataflowError, ValidationError
from .hal import collect_pages, text
from .models import AppRegistration, AppType, BulkRegistrationResult, RegistrationFailure
from .observability.logging import get_logger
from .observability.metrics import get_metrics_collector
from .observability.probe import probe
from .properties import require_text
from .transport.base import ContentType, Transport

log = get_logger("swr.registry")

_KNOWN_TYPES = {t.value for t in AppType}


class AppRegistry:
    """Registers single apps and imports the published catalog."""

    def __init__(
        self,
        transport: Transport,
        catalog_url: str,
        *,
        failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST,
        catalog_timeout: float | None = None,
        page_size: int = 2000,
    ):
        self.transport = transport
        self.catalog_url = catalog_url
        self.failure_policy = FailurePolicy(failure_policy)
        self.catalog_timeout = catalog_timeout
        self.page_size = page_size

    async def register_app(self, name: str, app_type: str, uri: str) -> AppRegistration:
        """Register (or overwrite) one application. ``version`` is not echoed back."""
        name = require_text(name, "name")
        app_type = require_text(app_type, "type")
        uri = require_text(uri, "uri")
        if app_type not in _KNOWN_TYPES:
            raise ValidationError(
                f"Unknown app type '{app_type}'; expected one of {sorted(_KNOWN_TYPES)}"
            )

        with probe("apps.register", app=name, type=app_type):
            await self.transport.execute(
                "POST",
                "/apps/{type}/{name}",
                {"type": app_type, "name": name},
                body={"uri": uri, "force": "true"},
                content_type=ContentType.FORM,
            )
        return AppRegistration(name=name, type=app_type, uri=uri, version=None)

    async def list_registered_apps(self, type_filter: str | None = None) -> list[AppRegistration]:
        """All registrations, or those of one type when ``type_filter`` is non-blank."""
        query = {"size": self.page_size}
        if type_filter and type_filter.strip():
            query["type"] = type_filter.strip()

        with probe("apps.list", type=query.get("type", "*")):
            items = await collect_pages(
                self.transport, "/apps", "appRegistrationResourceList", query=query
            )
        return [
            AppRegistration(
                name=text(item, "name"),
                type=text(item, "type"),
                uri=text(item, "uri", None),
                version=text(item, "version", None),
            )
            for item in items
        ]

    async def bulk_register_apps(self) -> int:
        """Import the catalog and return how many apps were registered."""
        result = await self.bulk_register_apps_detailed()
        return result.count

    async def bulk_register_apps_detailed(self) -> BulkRegistrationResult:
        """Import the catalog, applying the configured failure policy.

        Under ``fail_fast`` the first failing registration is re-raised with
        ``registered_count`` set to the number registered before it. Under
        ``best_effort`` failures are collected and the import carries on.
        An ``AuthenticationError`` always stops the import, whatever the policy.
        """
        result = BulkRegistrationResult()
        with probe("apps.bulk_register", policy=self.failure_policy.value):
            document = await fetch_catalog(self.transport, self.catalog_url, self.catalog_timeout)
            entries = parse_catalog(document)
            if not entries:
                log.info("Catalog is empty", url=self.catalog_url)
                return result

            try:
                for entry in entries:
                    try:
                        await self.register_app(entry.name, entry.type, entry.uri)
                    except AuthenticationError as e:
                        # Credential failures abort the import under every policy
                        e.registered_count = result.count
                        raise
                    except DataflowError as e:
                        if self.failure_policy is FailurePolicy.FAIL_FAST:
                            e.registered_count = result.count
                            raise
                        log.warning(
                            "Catalog registration failed",
                            app=entry.name,
                            type=entry.type,
                            error=str(e),
                        )
                        result.failures.append(
                            RegistrationFailure(type=entry.type, name=entry.name, error=str(e))
                        )
                    else:
                        result.count += 1
            finally:
                get_metrics_collector().record_catalog_registrations(
                    result.count, len(result.failures)
                )

        log.info(
            "Catalog import finished",
            registered=result.count,
            failed=len(result.failures),
            entries=len(entries),
        )
        return result
