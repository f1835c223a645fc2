APP_NAME = "DNA Intake"
APP_SLUG = "dna-intake"
CONFIG_FILENAME = "config.json"
LOG_FILENAME = "dna_intake.log"
DB_FILENAME = "dna_intake.sqlite3"
DATA_DIR_ENV = "DNA_INTAKE_DATA_DIR"

DEFAULT_DATA_SOURCE = "23andme"

VALID_CHROMOSOMES = frozenset([str(number) for number in range(1, 23)] + ["X", "Y", "MT"])
PATHOGENIC_LABELS = frozenset({"pathogenic", "likely_pathogenic"})
