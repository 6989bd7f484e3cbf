class OrderMetrics:
    """Metric keys for OrderService"""
    SUBMITTED = "orders_submitted"
    ACCEPTED = "orders_accepted"
    REJECTED = "orders_rejected"
    DISPATCHED = "orders_dispatched"
    PUBLISH_FAILED = "order_events_failed"


class CatalogMetrics:
    """Metric keys for BookClient"""
    FOUND = "catalog_found"
    NOT_FOUND = "catalog_not_found"
    FAILED = "catalog_failed"


class KafkaMetrics:
    """Metric keys for KafkaClient"""
    PRODUCED = "produced"
    FAILED_PRODUCE = "failed_produce"
    DLQ = "dlq"
    PROCESSED = "processed"
    FAILED_PROCESS = "failed_process"
