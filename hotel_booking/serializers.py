from rest_framework import serializers
from .models import Booking, Room
from . import errors, services, storage


class GuestInfoSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255)
    email = serializers.EmailField(max_length=255)
    phone = serializers.CharField(max_length=20)
    address = serializers.CharField(max_length=500)
    special_requests = serializers.CharField(allow_blank=True, required=False, default="")


class RoomSerializer(serializers.ModelSerializer):
    price = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False)

    class Meta:
        model = Room
        fields = ['id', 'room_number', 'floor', 'price', 'capacity', 'available']

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['type'] = instance.room_type.name
        data['features'] = instance.room_type.features
        return data


class AvailabilityQuerySerializer(serializers.Serializer):
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    adults = serializers.IntegerField(min_value=1, default=1)
    children = serializers.IntegerField(min_value=0, default=0)

    def validate(self, data):
        if data['check_out'] <= data['check_in']:
            raise serializers.ValidationError({'check_out': "check_out must be after check_in"})
        return data


def _check_proof(value):
    try:
        storage.validate_proof(value)
    except errors.ValidationError as exc:
        raise serializers.ValidationError(exc.message)
    return value


class BookingCreateSerializer(serializers.Serializer):
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    adults = serializers.IntegerField(min_value=1)
    children = serializers.IntegerField(min_value=0, default=0)
    room_id = serializers.IntegerField()
    guest_info = GuestInfoSerializer()
    payment_method = serializers.ChoiceField(choices=Booking.PaymentMethod.choices)
    payment_proof = serializers.FileField(
        error_messages={'required': "Payment proof is required.", 'empty': "Payment proof is required."},
    )

    def validate_payment_proof(self, value):
        return _check_proof(value)

    def validate(self, data):
        if data['check_out'] <= data['check_in']:
            raise serializers.ValidationError({'check_out': "check_out must be after check_in"})
        return data

    def create(self, validated):
        return services.create_booking(services.BookingRequest(
            room_id=validated['room_id'],
            check_in=validated['check_in'],
            check_out=validated['check_out'],
            adults=validated['adults'],
            children=validated['children'],
            guest=services.GuestDetails(**validated['guest_info']),
            payment_method=validated['payment_method'],
            payment_proof=validated['payment_proof'],
            user_id=validated.get('user_id'),
        ))


class BookingSerializer(serializers.ModelSerializer):
    """Read-only booking view joined with its room, room type and user."""

    room = RoomSerializer(read_only=True)
    user_id = serializers.IntegerField(read_only=True)
    user_name = serializers.SerializerMethodField()
    nights = serializers.IntegerField(read_only=True)
    can_cancel = serializers.BooleanField(read_only=True)
    total_price = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True)
    payment_proof = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            'reference', 'room', 'user_id', 'user_name', 'check_in', 'check_out', 'nights',
            'adults', 'children', 'total_price', 'status', 'can_cancel', 'payment_method',
            'payment_proof', 'guest_info', 'created_at',
        ]
        read_only_fields = fields

    def get_user_name(self, instance):
        if instance.user is None:
            return None
        return instance.user.get_full_name() or instance.user.get_username()

    def get_payment_proof(self, instance):
        return storage.proof_url(instance.payment_proof, self.context.get('request'))


class GuestInfoUpdateSerializer(GuestInfoSerializer):
    address = serializers.CharField(max_length=500, allow_blank=True, required=False)
    special_requests = serializers.CharField(allow_blank=True, required=False)


class AdminBookingUpdateSerializer(serializers.Serializer):
    room_id = serializers.IntegerField()
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    adults = serializers.IntegerField(min_value=1)
    children = serializers.IntegerField(min_value=0)
    total_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    status = serializers.ChoiceField(choices=Booking.Status.choices)
    payment_method = serializers.ChoiceField(choices=Booking.PaymentMethod.choices)
    guest_info = GuestInfoUpdateSerializer()
    payment_proof = serializers.FileField(required=False)

    def validate_payment_proof(self, value):
        return _check_proof(value)

    def validate(self, data):
        # For partial updates compare against the stored dates
        check_in = data.get('check_in')
        check_out = data.get('check_out')
        if self.instance:
            check_in = check_in or self.instance.check_in
            check_out = check_out or self.instance.check_out
        if check_in and check_out and check_out <= check_in:
            raise serializers.ValidationError({'check_out': "check_out must be after check_in"})
        return data

    def update(self, instance, validated_data):
        proof = validated_data.pop('payment_proof', None)
        return services.update_booking(instance.reference, validated_data, proof)
