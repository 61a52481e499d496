APP_NAME = "hw-info-exporter"
APP_VERSION = "0.1.0"
