EMAIL_SUBJECT = 'Receipt #{receipt_number} from {company_name}'

ITEM_LINE = '{name} x {quantity} - {amount}'

EMAIL_ITEM_ROW = """
      <tr>
        <td style="padding: 8px; border-top: 1px solid #ddd;">{name} x {quantity}</td>
        <td style="text-align: right; padding: 8px; border-top: 1px solid #ddd;">{amount}</td>
      </tr>"""

EMAIL_HTML = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Receipt from {company_name}</h2>

  <p>Dear {customer_name},</p>

  <p>Thank you for your business! Please find your receipt attached to this email.</p>

  <div style="margin: 20px 0; padding: 20px; border: 1px solid #ddd; border-radius: 5px;">
    <p><strong>Receipt Number:</strong> {receipt_number}</p>
    <p><strong>Date:</strong> {date}</p>

    <h3>Items:</h3>
    <table style="width: 100%; border-collapse: collapse; margin: 10px 0;">
      <tr style="background-color: #f8f9fa;">
        <th style="text-align: left; padding: 8px;">Item</th>
        <th style="text-align: right; padding: 8px;">Amount</th>
      </tr>{rows}
    </table>

    <div style="margin-top: 20px; border-top: 2px solid #ddd; padding-top: 10px;">
      <p style="display: flex; justify-content: space-between;">
        <span>Subtotal:</span>
        <strong>{subtotal}</strong>
      </p>
      <p style="display: flex; justify-content: space-between;">
        <span>Tax:</span>
        <strong>{tax}</strong>
      </p>
      <p style="display: flex; justify-content: space-between; font-size: 1.2em;">
        <span>Total:</span>
        <strong>{total}</strong>
      </p>
    </div>

    <p><strong>Payment Method:</strong> {payment_method}</p>
  </div>

  <p>Best regards,<br>{company_name}</p>
</div>
"""

# WhatsApp formatting: *bold*
WHATSAPP_SUMMARY = """*Receipt from {company_name}*

Receipt #: {receipt_number}
Date: {date}

To: {customer_name}

*Items:*
{items}

*Summary:*
Subtotal: {subtotal}
Tax: {tax}
*Total: {total}*

Payment Method: {payment_method}

Thank you for your business!
"""

WHATSAPP_DOCUMENT_CAPTION = 'Here is your receipt PDF:'
