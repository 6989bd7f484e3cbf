from order_service.shared.metrics.metrics_collector import MetricsCollector
from order_service.shared.metrics.metrics_schema import CatalogMetrics, KafkaMetrics, OrderMetrics

__all__ = ["MetricsCollector", "CatalogMetrics", "KafkaMetrics", "OrderMetrics"]
