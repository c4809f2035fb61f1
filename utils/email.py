# utils/email.py
"""
Transactional email through the Brevo HTTP API, plus the built-in Thai HTML
bodies used when no active NotificationTemplate exists for a type.
"""
import os

import requests

from utils.thai_date import format_baht

BREVO_KEY = os.getenv("BREVO_API_KEY")
BREVO_URL = "https://api.brevo.com/v3/smtp/email"
EMAIL_SENDER = os.getenv("EMAIL_SENDER", "noreply@billmate.local")
EMAIL_SENDER_NAME = os.getenv("EMAIL_SENDER_NAME", "Bill Mate")


class EmailNotConfiguredError(Exception):
     pass


def send_email(to_email: str, subject: str, html: str):
     if not BREVO_KEY:
          raise EmailNotConfiguredError("BREVO_API_KEY is not set")

     response = requests.post(
          BREVO_URL,
          headers={
               "api-key": BREVO_KEY,
               "Content-Type": "application/json",
          },
          json={
               "sender": {"name": EMAIL_SENDER_NAME, "email": EMAIL_SENDER},
               "to": [{"email": to_email}],
               "subject": subject,
               "htmlContent": html,
          },
          timeout=10,
     )
     if response.status_code not in (200, 201):
          raise Exception(f"Brevo error: {response.text}")


def _wrap(heading: str, color: str, name: str, rows: str, footer: str) -> str:
     return f"""
          <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
               <div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px;">
                    <h2 style="color: {color}; margin-top: 0;">{heading}</h2>
                    <p style="color: #666; font-size: 16px;">เรียน คุณ<strong> {name}</strong></p>
                    <div style="background-color: white; padding: 15px; border-radius: 5px; margin: 15px 0;">
                         {rows}
                    </div>
                    <p style="color: #666; font-size: 14px;">{footer}</p>
               </div>
          </div>
     """


def payment_reminder_email(name: str, room_number: str, amount, due_date: str) -> str:
     rows = (
          f"<p><strong>ห้องที่:</strong> {room_number}</p>"
          f"<p><strong>จำนวนเงิน:</strong> {format_baht(amount)} บาท</p>"
          f"<p><strong>ครบกำหนดชำระ:</strong> {due_date}</p>"
     )
     return _wrap(
          "แจ้งเตือนการชำระเงิน", "#333", name, rows,
          "หากชำระเงินแล้ว กรุณาอัพโหลดสลิปการโอนผ่านระบบเพื่อให้เราตรวจสอบและยืนยันการชำระ",
     )


def overdue_email(name: str, room_number: str, amount, due_date: str) -> str:
     rows = (
          f"<p><strong>ห้องที่:</strong> {room_number}</p>"
          f"<p><strong>จำนวนเงิน:</strong> {format_baht(amount)} บาท</p>"
          f"<p style='color: #dc3545;'><strong>เกินกำหนดตั้งแต่:</strong> {due_date}</p>"
     )
     return _wrap("เตือนการชำระเงินเกินกำหนด", "#dc3545", name, rows, "กรุณาชำระเงินโดยเร็วที่สุด")


def bill_generated_email(name: str, room_number: str, amount, due_date: str, period: str) -> str:
     rows = (
          f"<p><strong>ห้องที่:</strong> {room_number}</p>"
          f"<p><strong>ประจำเดือน:</strong> {period}</p>"
          f"<p><strong>จำนวนเงิน:</strong> {format_baht(amount)} บาท</p>"
          f"<p><strong>ครบกำหนดชำระ:</strong> {due_date}</p>"
     )
     return _wrap("บิลค่าเช่าประจำเดือน", "#333", name, rows, "กรุณาชำระภายในวันครบกำหนด")


def payment_verified_email(name: str, room_number: str, amount) -> str:
     rows = (
          f"<p><strong>ห้องที่:</strong> {room_number}</p>"
          f"<p><strong>จำนวนเงิน:</strong> {format_baht(amount)} บาท</p>"
          f"<p style='color: #28a745;'><strong>สถานะ:</strong> ยืนยันเรียบร้อย</p>"
     )
     return _wrap(
          "ยืนยันการชำระเงินเรียบร้อย", "#28a745", name, rows,
          "เราได้รับและยืนยันการชำระเงินของคุณเรียบร้อยแล้ว ขอบคุณที่ชำระตรงเวลา!",
     )


def payment_rejected_email(name: str, room_number: str, reason: str) -> str:
     rows = (
          f"<p><strong>ห้องที่:</strong> {room_number}</p>"
          f"<p style='color: #dc3545;'><strong>เหตุผล:</strong> {reason}</p>"
     )
     return _wrap(
          "ไม่สามารถยืนยันการชำระได้", "#dc3545", name, rows,
          "กรุณาตรวจสอบข้อมูลและลองอัพโหลดสลิปใหม่ หรือติดต่อเจ้าของหอพัก หากมีคำถาม",
     )


def announcement_email(name: str, title: str, message: str) -> str:
     return _wrap(title, "#333", name, f"<p>{message}</p>", "ข้อความนี้ส่งจากผู้ดูแลหอพัก")
