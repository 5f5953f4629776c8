"""Backend для разработки: in-memory реализация auth API CloudGuard."""
