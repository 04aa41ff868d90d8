class StoreSchemaError(RuntimeError):
    """테이블 또는 필수 컬럼이 없어 안전하게 읽을 수 없는 경우."""

    def __init__(self, table: str, missing: list[str]):
        self.table = table
        self.missing = list(missing)
        super().__init__(f"Table '{table}' is missing expected columns: {', '.join(self.missing)}")
