from analyzer import BacklinkMetrics, OnPageMetrics

SYSTEM_PROMPT = "You are an SEO expert. Respond only with valid JSON."

SUMMARY_SCHEMA = {
    "name": "seo_analysis",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "critical": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Critical issues that need immediate attention"
            },
            "warnings": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Warnings and opportunities for improvement"
            },
            "good": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Positive signals and strengths"
            }
        },
        "required": ["critical", "warnings", "good"],
        "additionalProperties": False
    }
}


class ContextBuilder:

    def build(self, on_page: OnPageMetrics, backlinks: BacklinkMetrics) -> str:

        return f"""You are an SEO expert analyzing a website audit. Based on the following data, provide a structured analysis:

ON-PAGE DATA:
- Total Pages: {on_page.total_pages}
- 404 Errors: {on_page.errors_404}
- 5xx Errors: {on_page.errors_5xx}
- Missing Titles: {on_page.missing_titles}
- Missing Descriptions: {on_page.missing_descriptions}
- Duplicate Titles: {on_page.duplicate_titles}
- Duplicate Descriptions: {on_page.duplicate_descriptions}
- Missing H1: {on_page.missing_h1}
- Missing Alt Text: {on_page.missing_alt_text}
- Avg Load Time: {on_page.avg_load_time}ms
- Mobile Score: {on_page.mobile_score}

BACKLINK DATA:
- Total Backlinks: {backlinks.total_backlinks}
- Referring Domains: {backlinks.referring_domains}
- Dofollow Links: {backlinks.dofollow_links}
- Nofollow Links: {backlinks.nofollow_links}
- Toxic Links: {backlinks.toxic_links}
- Avg Domain Rank: {backlinks.avg_domain_rank}

Provide your analysis in the following JSON format with 3-5 items per category:
{{
  "critical": ["issue 1", "issue 2", ...],
  "warnings": ["warning 1", "warning 2", ...],
  "good": ["positive 1", "positive 2", ...]
}}"""

    def messages(self, on_page: OnPageMetrics, backlinks: BacklinkMetrics) -> list:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": self.build(on_page, backlinks)}
        ]
