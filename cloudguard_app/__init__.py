"""Клиент CloudGuard: сессия и авторизация."""
