# Infrastructure clients
from clients.env_config import Settings, load_settings
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.email_client import EmailGatewayClient, EmailGatewayError
