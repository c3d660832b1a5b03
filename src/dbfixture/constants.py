"""Fixed identifiers shared by the fixture and its CLI."""

REPO_NAME = "test-db-snapshot"
IMAGE_TAG = "latest"
IMAGE_NAME = f"{REPO_NAME}:{IMAGE_TAG}"

BASE_IMAGE = "mysql:8.0"
DB_NAME = "testdb"
DB_USER = "root"
DB_PASS = "password"
MYSQL_PORT = 3306
NETWORK_ALIAS = "mysql"

# Outside the image's declared VOLUME so `docker commit` captures the data.
DATA_DIR = "/var/lib/mysql-snapshot"

URL_PROTOCOL = "mysql+pymysql"
URL_CHARSET = "utf8mb4"
URL_COLLATION = "utf8mb4_0900_ai_ci"
URL_TIMEZONE = "Europe/London"

SNAPSHOT_LABEL = "org.testcontainers"

DEFAULT_CONFIG_FILE = ".dbfixture.yml"
ENV_PREFIX = "DBFIXTURE_"
ENV_DELETE_IMAGE = f"{ENV_PREFIX}DELETE_IMAGE"
ENV_FORCE_REFRESH = f"{ENV_PREFIX}FORCE_REFRESH"
ENV_PROFILE = f"{ENV_PREFIX}ENV"
TEST_PROFILE = "test"

SCHEMA_UPDATE = "update"
SCHEMA_NONE = "none"
