from __future__ import annotations

from typing import Iterable, Mapping, Optional

from log_shipper.models.fly import SecretInput
from log_shipper.services.providers import Provider


class UserInputError(ValueError):
    pass


class RequestPrompt:
    """Answers the log shipping setup prompts from values supplied up front.

    `selection` is the chosen provider (slug or display name, case-insensitive)
    and `answers` maps provider env var names to their values.
    """

    def __init__(self, *, selection: Optional[str], answers: Optional[Mapping[str, str]] = None) -> None:
        self._selection = (selection or "").strip()
        self._answers = dict(answers or {})

    def select_provider(self, providers: Iterable[Provider]) -> Provider:
        if not self._selection:
            raise UserInputError("No logging provider selected")

        wanted = self._selection.lower()
        options = list(providers)
        for provider in options:
            if provider.slug.lower() == wanted or provider.name.lower() == wanted:
                return provider

        choices = ", ".join(p.slug for p in options)
        raise UserInputError(f"Unknown logging provider: {self._selection!r} (choose one of: {choices})")

    def collect_provider_secrets(self, provider: Provider) -> list[SecretInput]:
        """Return the provider's secrets in catalog order.

        Required vars must be present and non-empty. Optional vars are kept only
        when non-empty. Keys the provider does not declare are rejected.
        """

        unknown = sorted(set(self._answers) - set(provider.all_vars))
        if unknown:
            raise UserInputError(f"Unexpected secrets for provider {provider.slug}: {', '.join(unknown)}")

        missing = [var for var in provider.required_vars if not (self._answers.get(var) or "").strip()]
        if missing:
            raise UserInputError(f"Missing required secrets for provider {provider.slug}: {', '.join(missing)}")

        secrets = [SecretInput(key=var, value=self._answers[var]) for var in provider.required_vars]
        for var in provider.optional_vars:
            value = self._answers.get(var)
            if value and value.strip():
                secrets.append(SecretInput(key=var, value=value))
        return secrets
