from flat_crawler.crawler.render import build_field_table, build_tree, node_label
from flat_crawler.crawler.session import CrawlResult, CrawlSession

__all__ = ["CrawlResult", "CrawlSession", "build_field_table", "build_tree", "node_label"]
