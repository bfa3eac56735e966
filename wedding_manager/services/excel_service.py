"""
Excel processing service for guest list import and guest/ledger export
"""

import io
from typing import Dict, List, Tuple

import pandas as pd

from wedding_manager.schemas.store import InvitationField, LedgerEntry
from wedding_manager.services.errors import CapacityExceeded, ValidationError

class ExcelService:
    """Service for handling Excel operations"""

    REQUIRED_COLUMNS = ['姓名', '手机号']
    TABLE_COLUMN = '桌号'
    ATTENDING_COLUMN = '是否出席'
    TRUTHY = {'是', 'y', 'yes', 'true', '1', '出席'}
    XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    @staticmethod
    def _cell(row, column) -> str:
        if column not in row or pd.isna(row[column]):
            return ''
        value = str(row[column]).strip()
        # numeric phones read back as "13800000000.0"
        if value.endswith('.0') and value[:-2].isdigit():
            value = value[:-2]
        return value

    @staticmethod
    def _to_bytes(df: pd.DataFrame, sheet_name: str) -> bytes:
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name=sheet_name)
        return buffer.getvalue()

    @staticmethod
    def create_template(fields: List[InvitationField]) -> bytes:
        """Create the guest import template with one column per custom field"""
        columns = ExcelService.REQUIRED_COLUMNS + [ExcelService.TABLE_COLUMN, ExcelService.ATTENDING_COLUMN]
        columns += [f.label for f in fields]
        df = pd.DataFrame(columns=columns)
        sample = {'姓名': '王小明', '手机号': '13800000000', '桌号': '1', '是否出席': '是'}
        df.loc[0] = [sample.get(col, '') for col in columns]
        return ExcelService._to_bytes(df, 'Guest List')

    @staticmethod
    def validate_excel_structure(df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """Validate Excel file structure"""
        errors = []
        normalized_columns = [str(col).strip() for col in df.columns]
        missing_columns = [col for col in ExcelService.REQUIRED_COLUMNS if col not in normalized_columns]
        if missing_columns:
            errors.append(f"Missing required columns: {', '.join(missing_columns)}")
        return len(errors) == 0, errors

    @staticmethod
    def validate_data_constraints(df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """Validate row-level constraints before anything is written"""
        errors = []
        seen_phones: Dict[str, int] = {}
        for index, row in df.iterrows():
            line = index + 2  # header is row 1
            name = ExcelService._cell(row, '姓名')
            phone = ExcelService._cell(row, '手机号')
            if not name and not phone:
                continue
            if not name or not phone:
                errors.append(f"Row {line}: 姓名和手机号均为必填")
                continue
            if phone in seen_phones:
                errors.append(f"Row {line}: 手机号 {phone} 与第 {seen_phones[phone]} 行重复")
            else:
                seen_phones[phone] = line
        return len(errors) == 0, errors

    @staticmethod
    def import_guests(file_content: bytes, registry, fields: List[InvitationField]) -> int:
        """Upsert every row by phone. All-or-nothing: any error raises ValidationError."""
        try:
            df = pd.read_excel(io.BytesIO(file_content), dtype=str)
        except Exception as e:
            raise ValidationError(f"无法读取Excel文件: {e}")
        df.columns = [str(col).strip() for col in df.columns]

        valid_structure, structure_errors = ExcelService.validate_excel_structure(df)
        if not valid_structure:
            raise ValidationError("Excel文件格式不正确", details=structure_errors)

        valid_data, data_errors = ExcelService.validate_data_constraints(df)
        if not valid_data:
            raise ValidationError("Excel数据校验失败", details=data_errors)

        label_to_key = {f.label: f.field_key for f in fields}
        errors = []
        processed_count = 0
        for index, row in df.iterrows():
            name = ExcelService._cell(row, '姓名')
            phone = ExcelService._cell(row, '手机号')
            if not name:
                continue

            submitted = {
                key: ExcelService._cell(row, label)
                for label, key in label_to_key.items()
                if label in df.columns
            }
            responses = registry.collect_responses(fields, submitted)
            attending = True
            if ExcelService.ATTENDING_COLUMN in df.columns:
                attending = ExcelService._cell(row, ExcelService.ATTENDING_COLUMN).lower() in ExcelService.TRUTHY
            table_no = None
            if ExcelService.TABLE_COLUMN in df.columns:
                table_no = ExcelService._cell(row, ExcelService.TABLE_COLUMN)

            try:
                registry.upsert_by_phone(name, phone, attending, responses, table_no)
            except CapacityExceeded as e:
                errors.append(f"Row {index + 2}: {e.message}")
                continue
            processed_count += 1

        if errors:
            raise ValidationError("Excel数据校验失败", details=errors)
        return processed_count

    @staticmethod
    def export_guests(rows: List[Dict], fields: List[InvitationField]) -> bytes:
        """Export the admin guest list (as produced by GuestRegistry.list_rows)"""
        data = []
        for guest in rows:
            row = {
                '姓名': guest['display_name'],
                '手机号': guest['phone'],
                '是否出席': '是' if guest['attending'] else '否',
                '人数': guest['party_size'],
                '桌号': guest['table_label'],
            }
            for field in fields:
                row[field.label] = guest['responses'].get(field.field_key, '')
            row['已签到'] = '是' if guest['checked_in'] else '否'
            row['实到人数'] = guest['actual_attendees'] or ''
            data.append(row)
        return ExcelService._to_bytes(pd.DataFrame(data), 'Guest List')

    @staticmethod
    def export_ledger(entries: List[LedgerEntry]) -> bytes:
        data = [
            {
                '日期': entry.occurred_at.isoformat(),
                '收支': '收入' if entry.direction == 'income' else '支出',
                '分类': entry.category,
                '金额': float(entry.amount),
                '用途': entry.purpose,
                '付款人': entry.payer,
                '收款人': entry.payee,
                '支付方式': entry.method,
                '备注': entry.note,
            }
            for entry in entries
        ]
        return ExcelService._to_bytes(pd.DataFrame(data), 'Ledger')
