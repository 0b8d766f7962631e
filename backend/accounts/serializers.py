from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Expose the public fields for the custom user model."""

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "display_name",
            "role",
        ]
        read_only_fields = ["id", "username", "role"]


class RegisterSerializer(serializers.ModelSerializer):
    """Validate and create a musician or studio owner account."""

    password = serializers.CharField(write_only=True, min_length=8)
    role = serializers.ChoiceField(
        choices=[User.MUSICIAN, User.STUDIO_OWNER],
        default=User.MUSICIAN,
    )

    class Meta:
        model = User
        fields = [
            "email",
            "password",
            "first_name",
            "last_name",
            "display_name",
            "role",
        ]

    def validate_email(self, value: str) -> str:
        email = value.lower()
        if User.objects.filter(email__iexact=email).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return email

    def create(self, validated_data):
        """Persist the user record with a normalized email and display name."""
        email = validated_data.pop("email").lower()
        user = User.objects.create_user(
            username=email,
            email=email,
            password=validated_data.pop("password"),
            **validated_data,
        )
        if not user.display_name:
            user.display_name = f"{user.first_name} {user.last_name}".strip() or email
            user.save(update_fields=["display_name"])
        return user


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Allow SimpleJWT to accept an email field for authentication."""

    username_field = User.USERNAME_FIELD

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["email"] = serializers.EmailField(required=False)
        self.fields[self.username_field].required = False

    def validate(self, attrs):
        email = attrs.get("email")
        if email and not attrs.get("username"):
            attrs["username"] = email.lower()
        attrs.pop("email", None)
        if not attrs.get("username"):
            raise serializers.ValidationError({"email": "This field is required."})
        data = super().validate(attrs)
        data["user"] = UserSerializer(self.user).data
        return data


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Update the mutable fields on the authenticated user's profile."""

    class Meta:
        model = User
        fields = ["email", "first_name", "last_name", "display_name"]

    def validate_email(self, value: str) -> str:
        email = value.lower()
        if (
            User.objects.filter(email__iexact=email)
            .exclude(pk=self.instance.pk)
            .exists()
        ):
            raise serializers.ValidationError("A user with this email already exists.")
        return email

    def update(self, instance, validated_data):
        """Keep username in sync with email changes."""
        email = validated_data.get("email")
        user = super().update(instance, validated_data)
        if email:
            user.username = email
            user.save(update_fields=["username"])
        if not user.display_name:
            user.display_name = (
                f"{user.first_name} {user.last_name}".strip() or user.email
            )
            user.save(update_fields=["display_name"])
        return user
