"""CLI entry point for site monitor."""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import List, Optional

import typer

from site_monitor.adapters.browser import PlaywrightLauncher
from site_monitor.adapters.notifications import HtmlAlertFormatter, HttpEmailSender
from site_monitor.adapters.storage import YamlMonitoringStore
from site_monitor.config import Settings, get_settings
from site_monitor.core import (
    MonitoringRule,
    NotificationCooldownCache,
    NotificationDispatcher,
    PageRenderer,
    RuleKind,
    ScrapeCoordinator,
    Target,
    normalize_url,
)
from site_monitor.use_cases import MonitoringService

app = typer.Typer(help="Monitor websites for new content and send email alerts.")

OUTCOME_ICONS = {
    "sent": "📧",
    "suppressed": "⏸️ ",
    "not_triggered": "•",
    "failed": "❌",
    "disabled": "⚠️ ",
}


def build_service(settings: Settings) -> tuple[MonitoringService, YamlMonitoringStore]:
    """Wire adapters and core components from settings."""
    store = YamlMonitoringStore(settings.storage_dir)

    renderer_config = settings.renderer
    launcher = PlaywrightLauncher(
        headless=renderer_config.headless,
        user_agent=renderer_config.user_agent,
        viewport_width=renderer_config.viewport_width,
        viewport_height=renderer_config.viewport_height,
        executable_path=renderer_config.executable_path,
    )
    renderer = PageRenderer(launcher, options=renderer_config.render_options())
    coordinator = ScrapeCoordinator(renderer, ttl=settings.coordinator.lock_ttl)

    sender = HttpEmailSender(
        api_key=settings.email_api_key,
        sender=settings.notifications.sender,
        api_url=settings.notifications.api_url,
    )
    dispatcher = NotificationDispatcher(
        sender=sender,
        formatter=HtmlAlertFormatter(),
        store=store,
        cooldown=NotificationCooldownCache(settings.notifications.cooldown),
    )

    service = MonitoringService(
        store=store,
        coordinator=coordinator,
        dispatcher=dispatcher,
        retry_count=settings.batch.retry_count,
        initial_retry_delay=settings.batch.initial_retry_delay,
    )
    return service, store


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Monitor websites for new content."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def scrape(
    url: str,
    content_pattern: Optional[List[str]] = typer.Option(None, "--content-pattern", help="Extra regex for content paths"),
    skip_pattern: Optional[List[str]] = typer.Option(None, "--skip-pattern", help="Extra regex for skipped paths"),
    config: Path = typer.Option(Path("config.yaml"), "--config", help="Path to config.yaml"),
) -> None:
    """Render a page once and print the content items found."""
    asyncio.run(async_scrape(url, content_pattern or [], skip_pattern or [], config))


async def async_scrape(url: str, content_patterns: list[str], skip_patterns: list[str], config: Path) -> None:
    settings = get_settings(config)
    service, _ = build_service(settings)

    print(f"\n🌐 Scraping {url}...")
    result = await service.scrape_target(url, content_patterns, skip_patterns)

    print(f"📄 {result.title or '(untitled)'}")
    print(f"  • Rendering: {'dynamic' if result.dynamic else 'static'}")
    print(f"  • Items: {len(result.items)}")
    for item in result.items:
        date = item.published_at.strftime("%d.%m.%Y") if item.published_at else "-"
        print(f"  [{date}] {item.title}")
        print(f"      {item.url}")
    print()


@app.command("add-target")
def add_target(
    url: str,
    name: str = typer.Option("", "--name", help="Display name"),
    target_id: Optional[str] = typer.Option(None, "--id", help="Target id (generated if omitted)"),
    content_pattern: Optional[List[str]] = typer.Option(None, "--content-pattern", help="Extra regex for content paths"),
    skip_pattern: Optional[List[str]] = typer.Option(None, "--skip-pattern", help="Extra regex for skipped paths"),
    config: Path = typer.Option(Path("config.yaml"), "--config", help="Path to config.yaml"),
) -> None:
    """Register a page to monitor."""
    settings = get_settings(config)
    store = YamlMonitoringStore(settings.storage_dir)

    target = Target(
        id=target_id or uuid.uuid4().hex[:12],
        url=normalize_url(url),
        name=name,
        content_patterns=content_pattern or [],
        skip_patterns=skip_pattern or [],
    )
    asyncio.run(store.save_target(target))
    print(f"✓ Target {target.id} added: {target.url}")


@app.command("add-rule")
def add_rule(
    target_id: str,
    recipient: str = typer.Option(..., "--recipient", help="Alert email address"),
    kind: RuleKind = typer.Option(RuleKind.ANY_CHANGE, "--kind", help="Rule kind"),
    threshold: int = typer.Option(1, "--threshold", help="Minimum new items for item_count rules"),
    keyword: Optional[str] = typer.Option(None, "--keyword", help="Keyword for keyword rules"),
    config: Path = typer.Option(Path("config.yaml"), "--config", help="Path to config.yaml"),
) -> None:
    """Attach an alert rule to a target."""
    settings = get_settings(config)
    store = YamlMonitoringStore(settings.storage_dir)

    if asyncio.run(store.get_target(target_id)) is None:
        print(f"❌ Unknown target: {target_id}")
        raise typer.Exit(code=1)

    try:
        rule = MonitoringRule(
            id=uuid.uuid4().hex[:12],
            target_id=target_id,
            kind=kind,
            recipient=recipient,
            threshold=threshold,
            keyword=keyword,
        )
    except ValueError as e:
        print(f"❌ {e}")
        raise typer.Exit(code=1)

    asyncio.run(store.save_rule(rule))
    print(f"✓ Rule {rule.id} ({rule.kind.value}) added for target {target_id}")


@app.command()
def check(
    config: Path = typer.Option(Path("config.yaml"), "--config", help="Path to config.yaml"),
) -> None:
    """Check all targets, store new items and send alerts."""
    asyncio.run(async_check(config))


async def async_check(config: Path) -> None:
    settings = get_settings(config)
    service, store = build_service(settings)

    print("\n" + "=" * 70)
    print("🔎 SITE MONITOR - Checking targets")
    print("=" * 70)

    if settings.email_enabled:
        print("  ✓ EMAIL_API_KEY - alerts will be sent")
    else:
        print("  ⚠️  EMAIL_API_KEY / sender missing - alerts disabled")

    async with service.coordinator, service.dispatcher.cooldown:
        reports = await service.check_all_targets()

    failed = 0
    for report in reports:
        if not report.ok:
            failed += 1
            print(f"\n❌ {report.target_id}: {report.error}")
            continue

        update = report.update
        print(f"\n📄 {update.target.name or update.target.url}")
        print(f"  • New items: {len(update.new_items)}")
        print(f"  • New links since last check: {len(report.new_links)}")
        for rule_id, outcome in report.outcomes.items():
            print(f"  {OUTCOME_ICONS.get(outcome.value, '•')} rule {rule_id}: {outcome.value}")

        removed = store.prune_snapshots(report.target_id, keep=settings.batch.keep_snapshots)
        if removed:
            print(f"  • Pruned {removed} old snapshots")

    print("\n" + "=" * 70)
    print(f"✅ Done: {len(reports) - failed} checked, {failed} failed")
    print("=" * 70 + "\n")


@app.command()
def rules(
    config: Path = typer.Option(Path("config.yaml"), "--config", help="Path to config.yaml"),
) -> None:
    """Evaluate all enabled rules against items first seen since they last fired."""
    asyncio.run(async_rules(config))


async def async_rules(config: Path) -> None:
    settings = get_settings(config)
    service, _ = build_service(settings)

    outcomes = await service.run_all_enabled_rules()
    if not outcomes:
        print("No enabled rules.")
        return

    for rule_id, outcome in outcomes.items():
        print(f"{OUTCOME_ICONS.get(outcome.value, '•')} rule {rule_id}: {outcome.value}")


@app.command()
def status(
    config: Path = typer.Option(Path("config.yaml"), "--config", help="Path to config.yaml"),
) -> None:
    """Show stored targets, rules and item counts."""
    settings = get_settings(config)
    store = YamlMonitoringStore(settings.storage_dir)
    stats = store.get_stats()

    print(f"\n📊 Storage: {settings.storage_dir}")
    print(f"  • Targets: {stats['targets']}")
    print(f"  • Rules: {stats['rules']}")
    print(f"  • Items: {stats['total_items']}")
    for target_id, count in sorted(stats["by_target"].items()):
        print(f"    {target_id}: {count}")
    print()


if __name__ == "__main__":
    app()
