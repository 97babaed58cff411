from fastapi import Request


def get_notification_store(request: Request):
    return request.app.state.notification_store


def get_customer_client(request: Request):
    return request.app.state.customer_client


def get_expiry_watcher(request: Request):
    return request.app.state.expiry_watcher
