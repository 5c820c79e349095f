import multiprocessing

bind = "0.0.0.0:8000"
wsgi_app = "taskflow.main:app"

workers = multiprocessing.cpu_count() * 2 + 1
worker_class = "uvicorn.workers.UvicornWorker"

timeout = 60
keepalive = 5

# stdout / stderr, collected by the container runtime
accesslog = "-"
errorlog = "-"
loglevel = "info"

name = "taskflow_api"
reload = False
