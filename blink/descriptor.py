"""Static descriptions served to wallets: the action itself and the discovery manifest."""

from urllib.parse import urljoin

from blink.config import Settings
from blink.schemas import (
    ActionGetResponse,
    ActionLinks,
    ActionParameter,
    ActionRule,
    ActionsManifest,
    LinkedAction,
)
from stake.actions import format_sol


def build_action_descriptor(settings: Settings, base_url: str) -> ActionGetResponse:
    """Describes the stake action, with one link per preset amount and one for a custom amount.

    `base_url` is the origin the request came in on; the icon is resolved
    against it so wallets get an absolute URL.
    """
    actions = [
        LinkedAction(
            label=f"Stake {format_sol(amount)} SOL",
            href=f"{settings.ACTION_PATH}?amount={format_sol(amount)}",
        )
        for amount in settings.PRESET_AMOUNTS
    ]
    actions.append(
        LinkedAction(
            label="Choose amount",
            href=f"{settings.ACTION_PATH}?amount={{amount}}",
            parameters=[
                ActionParameter(
                    name="amount",
                    label="SOL to stake",
                    type="number",
                    required=True,
                    min=float(settings.MIN_AMOUNT),
                ),
            ],
        )
    )
    return ActionGetResponse(
        title=settings.TITLE,
        label=settings.LABEL,
        description=settings.DESCRIPTION,
        icon=urljoin(base_url, settings.ICON_PATH),
        links=ActionLinks(actions=actions),
    )


def build_actions_manifest(settings: Settings) -> ActionsManifest:
    return ActionsManifest(
        rules=[
            ActionRule(pathPattern=settings.ACTION_PAGE_PATH, apiPath=settings.ACTION_PATH),
            ActionRule(pathPattern="/api/actions/**", apiPath="/api/actions/**"),
        ]
    )
