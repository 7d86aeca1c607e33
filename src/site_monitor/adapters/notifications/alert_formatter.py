"""HTML alert formatter."""

from html import escape
from typing import Sequence
from urllib.parse import urlsplit

from site_monitor.core import AlertFormatter, ContentItem, MonitoringRule, RuleKind, Target

MAX_SUMMARY_LENGTH = 300


class HtmlAlertFormatter(AlertFormatter):
    """Format new-content alerts as a simple HTML email."""

    def format(self, rule: MonitoringRule, target: Target, items: Sequence[ContentItem]) -> tuple[str, str]:
        host = urlsplit(target.url).netloc or target.url
        count = len(items)

        if rule.kind == RuleKind.KEYWORD:
            subject = f'Keyword "{rule.keyword}" detected on {host}'
        else:
            subject = f"{count} new item{'' if count == 1 else 's'} on {host}"

        lines = [
            f"<h2>{escape(subject)}</h2>",
            f'<p>New content found on <a href="{escape(target.url, quote=True)}">{escape(target.name or host)}</a>:</p>',
            "<ul>",
        ]
        for item in items:
            lines.extend(self._format_item(item))
        lines.append("</ul>")

        return subject, "\n".join(lines)

    def _format_item(self, item: ContentItem) -> list[str]:
        """Format single alert entry."""
        lines = [f'<li><a href="{escape(item.url, quote=True)}">{escape(item.title)}</a>']

        if item.published_at:
            lines.append(f"<br><small>{item.published_at.strftime('%d.%m.%Y')}</small>")

        if item.summary:
            summary = item.summary
            if len(summary) > MAX_SUMMARY_LENGTH:
                summary = summary[:MAX_SUMMARY_LENGTH].rstrip() + "..."
            lines.append(f"<p>{escape(summary)}</p>")

        lines.append("</li>")
        return lines
