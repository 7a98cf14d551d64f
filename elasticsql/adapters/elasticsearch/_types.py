from typing import TYPE_CHECKING

from elasticsearch import Elasticsearch

if TYPE_CHECKING:
    from typing_extensions import TypeAlias

    ElasticsearchConnection: TypeAlias = Elasticsearch
else:
    ElasticsearchConnection = Elasticsearch

__all__ = ("ElasticsearchConnection",)
